"""Certificate artifact rendering (Pillow, saved as a one page PDF)."""

from __future__ import annotations

import io
import logging
from datetime import datetime

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger("certificates.generator")

WIDTH, HEIGHT = 1754, 1240  # A4 landscape at 150 dpi
PRIMARY = (0, 29, 61)
ACCENT = (255, 195, 0)
MUTED = (60, 72, 88)

_FONT_DIR = "/usr/share/fonts/truetype/dejavu"


def _font(name: str, size: int):
    try:
        return ImageFont.truetype(f"{_FONT_DIR}/{name}", size)
    except OSError:
        logger.debug("certificate_font_missing name=%s", name)
        return ImageFont.load_default()


def render_certificate_pdf(
    *,
    recipient_name: str,
    course_title: str,
    issued_at: datetime,
    certificate_ref: str,
) -> bytes:
    img = Image.new("RGB", (WIDTH, HEIGHT), color="white")
    draw = ImageDraw.Draw(img)
    draw.rectangle([40, 40, WIDTH - 40, HEIGHT - 40], outline=PRIMARY, width=10)
    draw.rectangle([62, 62, WIDTH - 62, HEIGHT - 62], outline=ACCENT, width=3)

    title_font = _font("DejaVuSerif-Bold.ttf", 72)
    name_font = _font("DejaVuSerif-Bold.ttf", 64)
    text_font = _font("DejaVuSans.ttf", 34)
    small_font = _font("DejaVuSans.ttf", 26)

    def centered(text: str, font, y: int, fill) -> None:
        bbox = draw.textbbox((0, 0), text, font=font)
        draw.text(((WIDTH - (bbox[2] - bbox[0])) / 2, y), text, fill=fill, font=font)

    centered("CertiFree Certificate of Completion", title_font, 170, PRIMARY)
    centered("This certifies that", text_font, 340, MUTED)
    centered(recipient_name, name_font, 420, ACCENT)
    centered("has successfully completed the course", text_font, 560, MUTED)
    centered(course_title, title_font, 640, PRIMARY)
    centered(f"Issued on {issued_at.strftime('%B %d, %Y')}", small_font, 860, MUTED)
    centered(f"Certificate ref: {certificate_ref}", small_font, 920, MUTED)

    buf = io.BytesIO()
    img.save(buf, format="PDF", resolution=150.0)
    return buf.getvalue()


__all__ = ["render_certificate_pdf"]
