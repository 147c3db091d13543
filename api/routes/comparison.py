"""
Comparison routes for the Spritediff API.

Compares two document snapshots and reports which dimensions differ.
"""
import json
import logging

from fastapi import APIRouter, UploadFile, File, HTTPException
from pydantic import ValidationError

from config import settings
from core import compare_docs, DocDiff, DIMENSIONS
from api.schemas import (
    ComparisonRequest, DocDiffResponse, DocumentSnapshot, SnapshotDecodeError
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=DocDiffResponse)
async def compare_snapshots(request: ComparisonRequest):
    """
    Compare two document snapshots and return the differing dimensions.
    """
    try:
        before = request.before.to_document()
        after = request.after.to_document()
    except SnapshotDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    diff = compare_docs(before, after, color_tolerance=settings.COLOR_PROFILE_TOLERANCE)
    return DocDiffResponse.from_diff(diff)


async def _read_snapshot(upload: UploadFile, label: str) -> DocumentSnapshot:
    if not upload.filename or not upload.filename.lower().endswith('.json'):
        raise HTTPException(status_code=400, detail=f"{label} file must be JSON")

    content = await upload.read()
    try:
        data = json.loads(content.decode('utf-8'))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON in {label.lower()} file: {e}")

    try:
        return DocumentSnapshot.model_validate(data)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid snapshot in {label.lower()} file: {e.error_count()} error(s)"
        )


@router.post("/files")
async def compare_files(
    before_file: UploadFile = File(...),
    after_file: UploadFile = File(...)
):
    """
    Compare two uploaded JSON snapshot files.
    """
    before_snapshot = await _read_snapshot(before_file, "Before")
    after_snapshot = await _read_snapshot(after_file, "After")

    try:
        before = before_snapshot.to_document()
        after = after_snapshot.to_document()
    except SnapshotDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Comparing uploaded snapshots {before_file.filename} and {after_file.filename}")
    diff = compare_docs(before, after, color_tolerance=settings.COLOR_PROFILE_TOLERANCE)

    return {
        "before_file": before_file.filename,
        "after_file": after_file.filename,
        **DocDiffResponse.from_diff(diff).model_dump(),
        "report": generate_report(before_file.filename, after_file.filename, diff)
    }


def generate_report(before_name: str, after_name: str, diff: DocDiff) -> str:
    """Generate a text report for a document comparison."""
    from datetime import datetime, timezone

    lines = [
        "=" * 70,
        "SPRITE DOCUMENT COMPARISON REPORT",
        f"{settings.APP_NAME} v{settings.APP_VERSION}",
        "=" * 70,
        "",
        f"Timestamp:        {datetime.now(timezone.utc).isoformat()}",
        f"Before:           {before_name}",
        f"After:            {after_name}",
        "",
    ]

    if not diff:
        lines.extend([
            "-" * 40,
            "RESULT: NO DIFFERENCES FOUND",
            "-" * 40,
            "",
            "The two documents are identical.",
        ])
    else:
        changed = diff.changed_dimensions
        lines.extend([
            "-" * 40,
            f"RESULT: {len(changed)} DIMENSION(S) DIFFER",
            "-" * 40,
            "",
        ])
        for name in DIMENSIONS:
            mark = "DIFFERS" if getattr(diff, name) else "same"
            lines.append(f"  {name.replace('_', ' ').title():<18}{mark}")
        lines.append("")

    lines.extend([
        "=" * 70,
        "END OF REPORT",
        "=" * 70,
    ])

    return "\n".join(lines)
