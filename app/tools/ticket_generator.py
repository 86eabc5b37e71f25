"""
Code-drawn show tickets.

Draws a portrait ticket (gradient background, gold border, show name,
QR code, guest name) with Pillow and returns it as a PNG data URL that
can be sent straight back as an image reply.
"""

import base64
import json
from datetime import date
from io import BytesIO

import qrcode
from PIL import Image, ImageDraw, ImageFont

from app.logging_config import get_logger

logger = get_logger(__name__)

WIDTH = 800
HEIGHT = 1200
QR_SIZE = 400
QR_PADDING = 20

HEADER_TEXT = "OSCAR OMUHLE LIVE"

# Vertical gradient stops: (position, RGB)
GRADIENT_STOPS = [
    (0.0, (0x4A, 0x00, 0xE0)),  # purple
    (0.5, (0x00, 0x00, 0x00)),  # black
    (1.0, (0x1A, 0x1A, 0x1A)),  # grey
]
GOLD = (0xFF, 0xD7, 0x00)
WHITE = (0xFF, 0xFF, 0xFF)
GREEN = (0x00, 0xFF, 0x00)


def _gradient_color(position: float) -> tuple[int, int, int]:
    for (start_pos, start), (end_pos, end) in zip(GRADIENT_STOPS, GRADIENT_STOPS[1:]):
        if position <= end_pos:
            t = (position - start_pos) / (end_pos - start_pos)
            return tuple(round(a + (b - a) * t) for a, b in zip(start, end))
    return GRADIENT_STOPS[-1][1]


def _font(size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def build_ticket_payload(user_name: str, show_name: str, issued: date | None = None) -> str:
    """JSON encoded into the QR code: user, show, date, valid flag."""
    return json.dumps({
        "u": user_name,
        "s": show_name,
        "d": (issued or date.today()).isoformat(),
        "v": True,
    })


def render_ticket(user_name: str, show_name: str, seat_type: str = "General") -> Image.Image:
    """Draw the ticket image."""
    image = Image.new("RGB", (WIDTH, HEIGHT))
    draw = ImageDraw.Draw(image)

    for y in range(HEIGHT):
        draw.line([(0, y), (WIDTH, y)], fill=_gradient_color(y / (HEIGHT - 1)))

    draw.rectangle([30, 30, WIDTH - 30, HEIGHT - 30], outline=GOLD, width=10)

    center = WIDTH // 2
    draw.text((center, 120), HEADER_TEXT, fill=WHITE, font=_font(50), anchor="ms")
    draw.text((center, 200), show_name.upper(), fill=GOLD, font=_font(40), anchor="ms")

    qr = qrcode.QRCode(border=2)
    qr.add_data(build_ticket_payload(user_name, show_name))
    qr.make(fit=True)
    qr_image = qr.make_image(fill_color="black", back_color="white").get_image()
    qr_image = qr_image.convert("RGB").resize((QR_SIZE, QR_SIZE), Image.NEAREST)

    box_left = center - QR_SIZE // 2 - QR_PADDING
    box_top = 330
    draw.rectangle(
        [box_left, box_top, box_left + QR_SIZE + 2 * QR_PADDING, box_top + QR_SIZE + 2 * QR_PADDING],
        fill=WHITE,
    )
    image.paste(qr_image, (box_left + QR_PADDING, box_top + QR_PADDING))

    draw.text((center, 850), "GUEST:", fill=WHITE, font=_font(30), anchor="ms")
    draw.text((center, 910), user_name.upper(), fill=WHITE, font=_font(50), anchor="ms")
    draw.text((center, 1000), f"PAID - {seat_type.upper()}", fill=GREEN, font=_font(40), anchor="ms")

    return image


def generate_ticket(user_name: str, show_name: str, seat_type: str = "General") -> str:
    """
    Generate a ticket and return it as a PNG data URL.

    Args:
        user_name: Guest name printed on the ticket
        show_name: Show title
        seat_type: Seat label, e.g. "VIP Access"

    Returns:
        "data:image/png;base64,..." string
    """
    image = render_ticket(user_name, show_name, seat_type)

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")

    logger.info("ticket_generated", show=show_name, seat_type=seat_type, size_bytes=len(encoded))
    return f"data:image/png;base64,{encoded}"
