"""QR labels for cut bundles.

Each bundle gets a printable QR code so operators can scan it at their
machine.  The payload is a simple pipe-delimited string that any scanner can
decode without knowing the database schema.
"""

import os
import qrcode


def ensure_dir(path: str) -> str:
    """Ensure that ``path`` exists and return it."""

    os.makedirs(path, exist_ok=True)
    return path


def bundle_qr_payload(bundle) -> str:
    """``bundle_id|lot|article|size|color|pieces`` for a bundle record."""

    return "|".join(str(v) for v in (
        bundle.bundle_id, bundle.lot_number, bundle.article_number,
        bundle.size, bundle.color, bundle.pieces,
    ))


def make_bundle_qr(static_dir: str, payload: str, filename: str) -> str:
    """Generate a QR code PNG for a bundle and return its file path."""

    ensure_dir(static_dir)
    qr = qrcode.QRCode(version=1, box_size=10, border=5)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    fp = os.path.join(static_dir, filename)
    img.save(fp)
    return fp
