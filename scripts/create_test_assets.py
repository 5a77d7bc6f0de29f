from pathlib import Path

from PIL import Image, ImageDraw


REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURES_DIR = REPO_ROOT / "scripts" / "fixtures"

def create_test_assets():
    FIXTURES_DIR.mkdir(parents=True, exist_ok=True)

    # 1. Product cutout: a bottle shape on transparent
    product = Image.new('RGBA', (300, 600), (0, 0, 0, 0))
    draw = ImageDraw.Draw(product)
    draw.rounded_rectangle((60, 160, 240, 580), radius=40, fill=(180, 30, 40, 255))
    draw.rectangle((120, 40, 180, 170), fill=(180, 30, 40, 255))
    draw.rectangle((80, 300, 220, 420), fill=(245, 240, 230, 255))  # label
    out_prod = FIXTURES_DIR / "test_product.png"
    product.save(out_prod)
    print(f"Created {out_prod}")

    # 2. Background: dim room with a table, saved as JPEG like generated backdrops
    background = Image.new('RGB', (1024, 768), (70, 60, 55))
    draw = ImageDraw.Draw(background)
    draw.rectangle((0, 520, 1024, 768), fill=(120, 90, 60))
    out_bg = FIXTURES_DIR / "test_background.jpg"
    background.save(out_bg, format="JPEG", quality=90)
    print(f"Created {out_bg}")

if __name__ == "__main__":
    create_test_assets()
