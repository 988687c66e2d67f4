import logging
import mimetypes
import re
import uuid
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from itertools import islice

from shared.errors import DirectoryError, UploadFailed
from shared.forms import Attachment

logger = logging.getLogger("member-service")

DEFAULT_CONTENT_TYPE = "application/octet-stream"
KEY_PREFIX = "uploads"

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str) -> str:
    base = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
    base = _UNSAFE_RE.sub("_", base).strip("._")
    return base or "file"


def storage_key(filename: str) -> str:
    return f"{KEY_PREFIX}/{uuid.uuid4().hex}-{sanitize_filename(filename)}"


def content_type_for(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or DEFAULT_CONTENT_TYPE


class AttachmentUploader:
    """
    Uploads attachments to a blob store and returns their URLs in input order.

    No retries and no cleanup: the first failure fails the whole batch, and
    objects already stored by the batch are left for the caller to account for.
    """

    def __init__(self, blob_store, max_workers: int = 4):
        self.blob_store = blob_store
        self.max_workers = max(1, max_workers)

    def upload_one(self, attachment: Attachment) -> str:
        key = storage_key(attachment.filename)
        try:
            url = self.blob_store.put(attachment.data, key, content_type_for(attachment.filename))
        except DirectoryError as e:
            raise UploadFailed(attachment.filename, cause=e) from e
        except Exception as e:
            logger.exception("Unexpected error uploading %s", attachment.filename)
            raise UploadFailed(attachment.filename, cause=e) from e

        logger.info("Uploaded %s -> %s", attachment.filename, key)
        return url

    def upload_all(self, attachments: list[Attachment]) -> list[str]:
        if not attachments:
            return []
        if self.max_workers == 1 or len(attachments) == 1:
            return [self.upload_one(a) for a in attachments]

        workers = min(self.max_workers, len(attachments))
        urls: list[str] = [""] * len(attachments)
        failed: tuple[int, UploadFailed] | None = None
        pending = iter(enumerate(attachments))

        # at most `workers` uploads in flight; nothing new starts once one has failed
        with ThreadPoolExecutor(max_workers=workers) as pool:
            in_flight = {pool.submit(self.upload_one, a): i for i, a in islice(pending, workers)}
            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for f in done:
                    i = in_flight.pop(f)
                    try:
                        urls[i] = f.result()
                    except UploadFailed as e:
                        if failed is None or i < failed[0]:
                            failed = (i, e)
                if failed is None:
                    for i, a in islice(pending, len(done)):
                        in_flight[pool.submit(self.upload_one, a)] = i

        if failed is not None:
            raise failed[1]
        return urls
