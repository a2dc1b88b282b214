import argparse
import base64
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from assetgen.config import Settings
from assetgen.core import AssetPipeline
from assetgen.generator import ImageCompositionClient
from assetgen.hero import HeroImagePipeline
from assetgen.images import ImageLoadError
from assetgen.messaging import TextGenerationClient
from assetgen.models import GenerationRequest
from assetgen.render import DEFAULT_ACCENT


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate listing copy (and optionally a hero image) for a product."
    )
    parser.add_argument(
        "--description",
        required=True,
        help="Product description, e.g. '优质蓝牙耳机带降噪功能'.",
    )
    parser.add_argument(
        "--image",
        default=None,
        help="Product photo: local path, http(s) URL or data URL.",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Override the text model identifier for this run.",
    )
    parser.add_argument(
        "--hero-out",
        type=Path,
        default=None,
        help="Write the hero image here (requires --image).",
    )
    parser.add_argument(
        "--accent-color",
        default=DEFAULT_ACCENT,
        help="Accent color for the locally composed hero image.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args()


def main() -> int:
    # Load provider settings from a local .env file if present
    # (e.g. DOUBAO_API_KEY=..., DOUBAO_ENDPOINT=...).
    load_dotenv()

    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.from_env()
    if not settings.text_configured:
        print("⚠️  DOUBAO_API_KEY / DOUBAO_ENDPOINT not set. Using the local mock asset.")

    pipeline = AssetPipeline(TextGenerationClient(settings))
    request = GenerationRequest(description=args.description, image_ref=args.image)
    asset = pipeline.generate(request, model=args.model)
    print(json.dumps(asset, ensure_ascii=False, indent=2))

    if args.hero_out is None:
        return 0
    if not args.image:
        print("⚠️  --hero-out needs --image; skipping hero image.")
        return 2

    image_client = ImageCompositionClient(settings)
    try:
        hero = HeroImagePipeline(image_client).generate(
            args.image, asset, accent_color=args.accent_color
        )
    except ImageLoadError as e:
        print(f"❌ Hero image failed: {e}")
        return 1
    finally:
        image_client.close()

    args.hero_out.parent.mkdir(parents=True, exist_ok=True)
    if hero.is_remote:
        out_path = args.hero_out.with_suffix(".url")
        out_path.write_text(hero.ref + "\n", encoding="utf-8")
        print(f"🎨 Remote hero image URL saved to {out_path}")
    else:
        payload = hero.ref.split(",", 1)[1]
        args.hero_out.write_bytes(base64.b64decode(payload))
        print(f"🖼️  Locally composed hero image saved to {args.hero_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
