import uuid

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from app.core.config import settings


STATIC_URL_PREFIX = "/static/qrcodes"


def generate_account_qr(kind: str, account_id: uuid.UUID) -> str:
    """
    Renders the QR code other actors scan to identify this account.

    The payload is the bare account id: transporters scan user codes at
    pickup, recyclers scan transporter codes to claim a load. The PNG lands
    in the static directory and the returned value is its public URL.
    """
    filename = f"{kind}_qr_{account_id}.png"

    qr = qrcode.QRCode(
        version=1,
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(str(account_id))
    qr.make(fit=True)

    settings.qr_code_dir.mkdir(parents=True, exist_ok=True)
    qr.make_image(fill_color="black", back_color="white").save(
        settings.qr_code_dir / filename)

    return f"{settings.public_url}{STATIC_URL_PREFIX}/{filename}"
