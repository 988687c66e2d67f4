import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StoreUnavailable

logger = logging.getLogger("blob-store")


class S3BlobStore:
    """
    Thin wrapper over an S3 bucket.
    Every put() writes a new object; nothing is retried or overwritten on purpose.
    """

    def __init__(self, bucket: str, region: str, client=None):
        if not bucket:
            raise RuntimeError("Missing required environment variable: AWS_BUCKET_NAME")
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def put(self, data: bytes, key: str, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 put failed for %s: %s", key, e)
            raise StoreUnavailable("S3 Upload Failed", cause=e) from e

        return self.object_url(key)
