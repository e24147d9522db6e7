import boto3
from app.config import get_settings

_settings = get_settings()

AWS_REGION = _settings.AWS_REGION
S3_BUCKET = _settings.AWS_S3_BUCKET

# Create S3 client
s3_client = boto3.client(
    "s3",
    region_name=AWS_REGION,
    aws_access_key_id=_settings.AWS_ACCESS_KEY_ID or None,
    aws_secret_access_key=_settings.AWS_SECRET_ACCESS_KEY or None,
)
