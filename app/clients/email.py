from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from app.config import get_settings

_settings = get_settings()

MAIL_USERNAME = _settings.MAIL_USERNAME
MAIL_ENABLED = bool(_settings.MAIL_USERNAME and _settings.MAIL_PASSWORD)

conf = ConnectionConfig(
    MAIL_USERNAME=MAIL_USERNAME,
    MAIL_PASSWORD=_settings.MAIL_PASSWORD,
    MAIL_FROM=MAIL_USERNAME or "no-reply@maiscreditos.com.br",
    MAIL_PORT=_settings.MAIL_PORT,
    MAIL_SERVER=_settings.MAIL_SERVER,
    MAIL_STARTTLS=True,
    MAIL_SSL_TLS=False,
    USE_CREDENTIALS=True,
    VALIDATE_CERTS=True,
)

fm = FastMail(conf)
