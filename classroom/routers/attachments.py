from fastapi import APIRouter, Depends, Request, Response, status

from classroom.core.current_user import get_current_user
from classroom.models.user import User
from classroom.schemas.attachment import AttachmentRef
from classroom.storage.attachments import AttachmentStore, get_attachment_store

router = APIRouter()


# raw request body in, reference out; the reference goes into a submission
@router.post("", response_model=AttachmentRef, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    request: Request,
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: User = Depends(get_current_user),
):
    data = await request.body()
    reference = store.store(data)
    return AttachmentRef(reference=reference, size=len(data))


@router.get("/{reference}")
def download_attachment(
    reference: str,
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: User = Depends(get_current_user),
):
    return Response(content=store.fetch(reference), media_type="application/octet-stream")
