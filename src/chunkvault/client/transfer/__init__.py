from chunkvault.client.transfer.downloader import DownloadResult, FileDownloader
from chunkvault.client.transfer.progress import ProgressCallback, ProgressTracker, ProgressUpdate
from chunkvault.client.transfer.reassembly import merge
from chunkvault.client.transfer.retry import RetryPolicy, linear_backoff
from chunkvault.client.transfer.scheduler import TransferJob, TransferScheduler
from chunkvault.client.transfer.uploader import FileUploader, UploadResult

__all__ = [
    "DownloadResult",
    "FileDownloader",
    "FileUploader",
    "ProgressCallback",
    "ProgressTracker",
    "ProgressUpdate",
    "RetryPolicy",
    "TransferJob",
    "TransferScheduler",
    "UploadResult",
    "linear_backoff",
    "merge",
]
