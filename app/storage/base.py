from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO


@dataclass
class UploadResult:
    """Result of a media upload; error_message is set whenever status_code != 200."""
    status_code: int
    secure_url: str | None = None
    public_id: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200 and bool(self.secure_url)


class MediaStorage(ABC):
    @abstractmethod
    def upload_video(self, filename: str, stream: BinaryIO, folder: str) -> UploadResult:
        """Upload a video byte stream under folder; never raises for remote failures."""
        raise NotImplementedError
