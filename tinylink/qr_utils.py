import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def short_url(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('/')}/{code}"


def generate_qr_base64(data: str, box_size: int = 8) -> str:
    """PNG QR code for ``data``, base64-encoded for embedding in a data URI."""
    qr = qrcode.QRCode(border=4, box_size=box_size, error_correction=ERROR_CORRECT_M)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = BytesIO()
    img.save(buf)
    return base64.b64encode(buf.getvalue()).decode()
