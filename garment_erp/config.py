import os


def normalize_db_url(url: str) -> str:
    """Heroku/Render style ``postgres://`` URLs are not accepted by SQLAlchemy."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    """Configuration for the Flask app and database.

    - ``SQLALCHEMY_DATABASE_URI``: defaults to a local SQLite file named
      ``garment_erp.db`` but can be overridden via the ``DATABASE_URL``
      environment variable (PostgreSQL in production).
    - ``SQLALCHEMY_TRACK_MODIFICATIONS``: disables the event system which
      otherwise adds overhead.
    - ``SECRET_KEY``: used by Flask for session signing.  In production you
      should set this to a strong random value via the environment.
    - ``JSON_SORT_KEYS``: keep bundle and work item fields in insertion order.
    - ``MAX_CONTENT_LENGTH``: upper bound for WIP and template sheet uploads.
    - ``QR_DIR``: where bundle label PNGs are written.
    - ``BUNDLE_ID_WIDTH``: zero padding of the ``<lot>-B001`` bundle numbers.
    """

    SQLALCHEMY_DATABASE_URI = normalize_db_url(
        os.getenv("DATABASE_URL", "sqlite:///garment_erp.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_MB", "5")) * 1024 * 1024
    QR_DIR = os.path.abspath(os.getenv("QR_DIR", os.path.join("data", "qrcodes")))
    BUNDLE_ID_WIDTH = int(os.getenv("BUNDLE_ID_WIDTH", "3"))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
