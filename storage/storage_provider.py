"""
Storage Provider

Unified interface for storing evidence photos on local disk or cloud
providers (AWS S3, Azure Blob Storage, Google Cloud Storage).
"""

import os
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional
import yaml

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = 'inspections'
DEFAULT_CONTENT_TYPE = 'image/jpeg'


def build_object_key(prefix: str = DEFAULT_KEY_PREFIX, when: Optional[datetime] = None,
                     extension: str = '.jpg') -> str:
    """
    Build a unique object key for an uploaded photo.

    Keys are grouped by day and made unique with a random UUID, so two
    uploads never overwrite each other.

    Example:
        >>> build_object_key('inspections', datetime(2024, 3, 5))
        'inspections/2024/03/05/1b4e28ba-2fa1-11d2-883f-0016d3cca427.jpg'
    """
    when = when or datetime.now()
    parts = [p for p in (prefix.strip('/'), when.strftime('%Y/%m/%d')) if p]
    return '/'.join(parts + [f"{uuid.uuid4()}{extension}"])


class StorageProvider(ABC):
    """
    Abstract base class for storage providers.

    Defines the interface that all storage providers must implement,
    enabling seamless switching between local and cloud storage. Each call
    either returns a durable URL or raises; providers never retry.
    """

    key_prefix: str = DEFAULT_KEY_PREFIX

    @abstractmethod
    def upload(self, data: bytes, key: str, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        """
        Store an object.

        Args:
            data: Object bytes
            key: Object key (path inside the bucket or base directory)
            content_type: MIME type recorded with the object

        Returns:
            Durable URL of the stored object
        """
        pass

    def upload_photo(self, data: bytes, when: Optional[datetime] = None) -> str:
        """Upload a JPEG photo under a freshly generated key."""
        return self.upload(data, build_object_key(self.key_prefix, when))


class LocalStorageProvider(StorageProvider):
    """
    Local filesystem storage provider.

    Writes objects below a base directory and returns file:// URLs.

    Attributes:
        base_path: Base directory for stored objects
        public_base_url: Optional URL prefix to return instead of file:// URLs

    Example:
        >>> storage = LocalStorageProvider('./uploads')
        >>> url = storage.upload(jpeg_bytes, 'inspections/2024/03/05/photo.jpg')
    """

    def __init__(self, base_path: str = 'uploads', public_base_url: Optional[str] = None,
                 key_prefix: str = DEFAULT_KEY_PREFIX):
        """
        Initialize local storage provider.

        Args:
            base_path: Base directory path
            public_base_url: URL prefix served for base_path (optional)
            key_prefix: Prefix of generated photo keys
        """
        self.base_path = Path(base_path)
        self.public_base_url = public_base_url.rstrip('/') if public_base_url else None
        self.key_prefix = key_prefix

    def upload(self, data: bytes, key: str, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        """Write object to local disk."""
        full_path = self.base_path / key
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)

        logger.debug(f"Stored {len(data)} bytes at {full_path}")

        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return full_path.resolve().as_uri()


class S3StorageProvider(StorageProvider):
    """
    AWS S3 storage provider.

    Stores objects in Amazon S3 buckets.

    Attributes:
        bucket: S3 bucket name
        region: AWS region
        client: boto3 S3 client

    Example:
        >>> storage = S3StorageProvider(
        ...     bucket='inspection-photos',
        ...     region='us-east-1'
        ... )
        >>> url = storage.upload_photo(jpeg_bytes)
    """

    def __init__(self, bucket: str, region: str = 'us-east-1',
                 access_key_id: Optional[str] = None, secret_access_key: Optional[str] = None,
                 key_prefix: str = DEFAULT_KEY_PREFIX, client=None):
        """
        Initialize S3 storage provider.

        Args:
            bucket: S3 bucket name
            region: AWS region
            access_key_id: AWS access key (optional, uses default credentials)
            secret_access_key: AWS secret key (optional)
            key_prefix: Prefix of generated photo keys
            client: Pre-built S3 client (optional)
        """
        self.bucket = bucket
        self.region = region
        self.key_prefix = key_prefix

        if client is not None:
            self.client = client
            return

        try:
            import boto3
        except ImportError:
            raise ImportError("boto3 required for S3 storage. Install with: pip install boto3")

        if access_key_id and secret_access_key:
            self.client = boto3.client(
                's3',
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key
            )
        else:
            # Use default credentials
            self.client = boto3.client('s3', region_name=region)

        logger.info(f"Connected to S3 bucket: {bucket}")

    def upload(self, data: bytes, key: str, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        """Put object into S3."""
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


class AzureBlobStorageProvider(StorageProvider):
    """
    Azure Blob Storage provider.

    Stores objects in Azure Blob Storage containers.

    Example:
        >>> storage = AzureBlobStorageProvider(
        ...     account_name='myaccount',
        ...     container='inspection-photos'
        ... )
    """

    def __init__(self, account_name: str, container: str, account_key: Optional[str] = None,
                 key_prefix: str = DEFAULT_KEY_PREFIX):
        """
        Initialize Azure Blob Storage provider.

        Args:
            account_name: Azure storage account name
            container: Container name
            account_key: Account key (optional, uses default credentials)
            key_prefix: Prefix of generated photo keys
        """
        try:
            from azure.storage.blob import BlobServiceClient, ContentSettings  # type: ignore
        except ImportError:
            raise ImportError("azure-storage-blob is required for Azure storage. Install with: pip install azure-storage-blob")

        self.account_name = account_name
        self.container = container
        self.key_prefix = key_prefix
        self._content_settings = ContentSettings

        if account_key:
            connection_string = (
                f"DefaultEndpointsProtocol=https;"
                f"AccountName={account_name};"
                f"AccountKey={account_key};"
                f"EndpointSuffix=core.windows.net"
            )
            self.client = BlobServiceClient.from_connection_string(connection_string)
        else:
            # Use default credentials
            account_url = f"https://{account_name}.blob.core.windows.net"
            self.client = BlobServiceClient(account_url=account_url)

        self.container_client = self.client.get_container_client(container)
        logger.info(f"Connected to Azure Blob Storage: {container}")

    def upload(self, data: bytes, key: str, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        """Upload blob."""
        blob_client = self.container_client.get_blob_client(key)
        blob_client.upload_blob(
            data,
            overwrite=False,
            content_settings=self._content_settings(content_type=content_type)
        )
        return blob_client.url


class GCSStorageProvider(StorageProvider):
    """
    Google Cloud Storage provider.

    Stores objects in GCS buckets.

    Example:
        >>> storage = GCSStorageProvider(
        ...     bucket='inspection-photos',
        ...     project_id='my-project'
        ... )
    """

    def __init__(self, bucket: str, project_id: Optional[str] = None, credentials_path: Optional[str] = None,
                 key_prefix: str = DEFAULT_KEY_PREFIX):
        """
        Initialize GCS storage provider.

        Args:
            bucket: GCS bucket name
            project_id: GCP project ID (optional)
            credentials_path: Path to service account JSON (optional)
            key_prefix: Prefix of generated photo keys
        """
        try:
            from google.cloud import storage
        except ImportError:
            raise ImportError(
                "google-cloud-storage required for GCS. "
                "Install with: pip install google-cloud-storage"
            )

        if credentials_path:
            self.client = storage.Client.from_service_account_json(
                credentials_path,
                project=project_id
            )
        else:
            self.client = storage.Client(project=project_id)

        self.bucket = self.client.bucket(bucket)
        self.key_prefix = key_prefix
        logger.info(f"Connected to GCS bucket: {bucket}")

    def upload(self, data: bytes, key: str, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
        """Upload blob."""
        blob = self.bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type)
        return blob.public_url


def create_storage_provider(config_path: str = 'config.yaml') -> StorageProvider:
    """
    Factory function to create storage provider from configuration.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configured StorageProvider instance

    Example:
        >>> storage = create_storage_provider('config.yaml')
        >>> url = storage.upload_photo(jpeg_bytes)
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    storage_config = config.get('storage', {}) or {}
    storage_type = storage_config.get('type', 'local')
    key_prefix = storage_config.get('key_prefix', DEFAULT_KEY_PREFIX)

    if storage_type == 'local':
        local_config = storage_config.get('local', {}) or {}
        return LocalStorageProvider(
            base_path=local_config.get('base_path', 'uploads'),
            public_base_url=local_config.get('public_base_url'),
            key_prefix=key_prefix
        )

    elif storage_type == 's3':
        s3_config = storage_config.get('s3', {}) or {}
        aws_key_id = os.getenv('AWS_ACCESS_KEY_ID')
        aws_secret = os.getenv('AWS_SECRET_ACCESS_KEY')
        if not aws_key_id or not aws_secret:
            raise ValueError("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables are required for S3 storage")
        return S3StorageProvider(
            bucket=os.getenv('S3_BUCKET', s3_config.get('bucket')),
            region=s3_config.get('region', 'us-east-1'),
            access_key_id=aws_key_id,
            secret_access_key=aws_secret,
            key_prefix=key_prefix
        )

    elif storage_type == 'azure':
        azure_config = storage_config.get('azure', {}) or {}
        # account_key is optional (can use DefaultAzureCredential)
        return AzureBlobStorageProvider(
            account_name=os.getenv('AZURE_STORAGE_ACCOUNT', azure_config.get('account_name')),
            container=azure_config.get('container'),
            account_key=os.getenv('AZURE_STORAGE_KEY'),  # type: ignore
            key_prefix=key_prefix
        )

    elif storage_type == 'gcs':
        gcs_config = storage_config.get('gcs', {}) or {}
        return GCSStorageProvider(
            bucket=os.getenv('GCS_BUCKET', gcs_config.get('bucket')),
            project_id=os.getenv('GCP_PROJECT_ID', gcs_config.get('project_id')),
            credentials_path=os.getenv('GOOGLE_APPLICATION_CREDENTIALS',
                                       gcs_config.get('credentials_path')),
            key_prefix=key_prefix
        )

    else:
        raise ValueError(f"Unsupported storage type: {storage_type}")
