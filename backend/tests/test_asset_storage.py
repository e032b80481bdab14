from typing import List, Tuple

import pytest

from app.services.blob_service import AssetStorage, discard_assets

ACCOUNT_HOST = "atelierassets.blob.core.windows.net"


class RecordingBlobClient:
    def __init__(self, owner: "RecordingServiceClient", container: str, blob: str):
        self.owner = owner
        self.container = container
        self.blob = blob

    def delete_blob(self) -> None:
        self.owner.deleted.append((self.container, self.blob))


class RecordingServiceClient:
    primary_hostname = ACCOUNT_HOST

    def __init__(self):
        self.deleted: List[Tuple[str, str]] = []

    def get_blob_client(self, container: str, blob: str) -> RecordingBlobClient:
        return RecordingBlobClient(self, container, blob)


@pytest.mark.asyncio
async def test_delete_resolves_container_and_blob():
    client = RecordingServiceClient()
    storage = AssetStorage(client=client)

    deleted = await storage.delete(f"https://{ACCOUNT_HOST}/uploads/projects/plans/a%20b.pdf")

    assert deleted is True
    assert client.deleted == [("uploads", "projects/plans/a b.pdf")]


@pytest.mark.asyncio
async def test_foreign_hosts_are_never_deleted():
    client = RecordingServiceClient()
    storage = AssetStorage(client=client)

    result = await discard_assets(storage, [
        "https://cdn.example.com/uploads/projects/covers/cover.jpg",
        "https://otheraccount.blob.core.windows.net/uploads/plan.pdf",
    ])

    assert client.deleted == []
    assert result == {"deleted": 0, "failed": 2}
