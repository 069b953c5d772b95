"""S3 byte storage."""
import boto3
from botocore.client import Config
from botocore.exceptions import ClientError, BotoCoreError
from typing import BinaryIO, Optional
import logging

from mediavault.core.checksum import HashingReader
from mediavault.core.errors import StorageError
from .base import StorageBackend, StoredObject

logger = logging.getLogger(__name__)


class S3Storage(StorageBackend):
    """Stores objects in one S3 bucket."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client=None
    ):
        """Initialize S3 client with configuration."""
        self.bucket_name = bucket_name
        if client is not None:
            self.s3_client = client
            return

        try:
            self.s3_client = boto3.client(
                's3',
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region,
                endpoint_url=endpoint_url,
                config=Config(
                    signature_version='s3v4',
                    s3={'addressing_style': 'virtual'}
                )
            )
            logger.info(f"S3 storage initialized for bucket: {self.bucket_name}")
        except (BotoCoreError, ValueError) as e:
            logger.error(f"Failed to initialize S3 client: {e}")
            raise StorageError(f"S3 initialization failed: {str(e)}")

    def store(self, stream: BinaryIO, key: str) -> StoredObject:
        """
        Stream an upload into S3 while hashing it.

        Args:
            stream: Readable binary stream
            key: S3 object key

        Returns:
            StoredObject with the computed checksum

        Raises:
            StorageError: If the upload fails
        """
        reader = HashingReader(stream)
        try:
            self.s3_client.upload_fileobj(reader, self.bucket_name, key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading {key}: {e}")
            raise StorageError(f"Failed to upload object: {str(e)}")

        logger.info(f"Uploaded {reader.size} bytes to: {key}")
        return StoredObject(locator=key, checksum=reader.hexdigest(), size=reader.size)

    def read(self, locator: str) -> BinaryIO:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=locator)
            return response['Body']
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ('NoSuchKey', '404'):
                raise StorageError(f"Object not found: {locator}")
            logger.error(f"Error downloading file: {e}")
            raise StorageError(f"Failed to download object: {str(e)}")

    def delete(self, locator: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=locator)
            logger.info(f"Deleted S3 object: {locator}")
        except ClientError as e:
            logger.error(f"Error deleting object: {e}")
            raise StorageError(f"Failed to delete object: {str(e)}")

    def exists(self, locator: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=locator)
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code', '') in ('404', 'NoSuchKey', 'NotFound'):
                return False
            logger.error(f"Error checking object existence: {e}")
            raise StorageError(f"Failed to check object: {str(e)}")
