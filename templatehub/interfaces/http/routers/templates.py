"""Template upload, status and lifecycle endpoints."""

from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from templatehub.domain.templates import (
    ConcurrencyConflictError,
    StorageIntegrationError,
    Template,
    TemplateNotFoundError,
    TemplateService,
    TemplateValidationError,
    TemplateVersion,
)
from templatehub.interfaces.http.deps import get_template_service
from templatehub.schemas import (
    ChangeStatusRequest,
    DownloadUrlResponse,
    TemplateListResponse,
    TemplateResponse,
    TemplateVersionResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)

router = APIRouter()


def _to_schema(template: Template, only: Optional[TemplateVersion] = None) -> TemplateResponse:
    response = TemplateResponse.model_validate(template)
    if only is not None:
        response.versions = [TemplateVersionResponse.model_validate(only)]
    return response


_DOMAIN_ERRORS = (
    TemplateNotFoundError,
    TemplateValidationError,
    ConcurrencyConflictError,
    StorageIntegrationError,
)


def _raise_http(exc: Exception) -> NoReturn:
    if isinstance(exc, TemplateNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, TemplateValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, ConcurrencyConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, StorageIntegrationError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Object storage is unavailable") from exc
    raise exc


@router.post("/upload-url", response_model=UploadUrlResponse, summary="Request an upload URL for a new template version")
async def request_upload_url(
    payload: UploadUrlRequest,
    service: TemplateService = Depends(get_template_service),
):
    try:
        grant = await service.request_upload(
            template_name=payload.name,
            description=payload.description,
            file_name=payload.file_name,
        )
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    return UploadUrlResponse.model_validate(grant)


@router.get("/", response_model=TemplateListResponse, summary="List all templates")
async def list_templates(service: TemplateService = Depends(get_template_service)):
    templates = await service.list_templates()
    return TemplateListResponse(total=len(templates), templates=[_to_schema(t) for t in templates])


@router.get("/{template_id}", response_model=TemplateResponse, summary="Get a template by ID")
async def get_template(
    template_id: str,
    version_id: Optional[str] = None,
    service: TemplateService = Depends(get_template_service),
):
    try:
        template, version = await service.get_template(template_id, version_id)
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    return _to_schema(template, version)


@router.patch("/{template_id}/status", response_model=TemplateResponse, summary="Activate or deactivate a template or one version")
async def change_status(
    template_id: str,
    payload: ChangeStatusRequest,
    version_id: Optional[str] = None,
    service: TemplateService = Depends(get_template_service),
):
    try:
        template = await service.change_status(
            template_id,
            is_active=payload.is_active,
            reason=payload.reason,
            version_id=version_id,
        )
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    return _to_schema(template)


@router.post(
    "/{template_id}/versions/{version_id}/confirm",
    response_model=TemplateVersionResponse,
    summary="Record the uploaded file of a version",
)
async def confirm_upload(
    template_id: str,
    version_id: str,
    service: TemplateService = Depends(get_template_service),
):
    try:
        version = await service.confirm_upload(template_id, version_id)
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    return TemplateVersionResponse.model_validate(version)


@router.get("/{template_id}/download-url", response_model=DownloadUrlResponse, summary="Request a download URL")
async def request_download_url(
    template_id: str,
    version_id: Optional[str] = None,
    service: TemplateService = Depends(get_template_service),
):
    try:
        grant = await service.request_download(template_id, version_id)
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    return DownloadUrlResponse.model_validate(grant)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a template and its files")
async def remove_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
):
    try:
        removed = await service.remove_template(template_id)
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Template with ID '{template_id}' was not found.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{template_id}/versions/{version_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a single template version",
)
async def remove_version(
    template_id: str,
    version_id: str,
    service: TemplateService = Depends(get_template_service),
):
    try:
        await service.remove_version(template_id, version_id)
    except _DOMAIN_ERRORS as exc:
        _raise_http(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
