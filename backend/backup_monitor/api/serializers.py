"""JSON shapes returned to the dashboard; field names are camelCase."""
from typing import Optional

from backup_monitor.core.clock import as_utc
from backup_monitor.models import Alert, ApiKey, BackupReport, Device, User


def device_dict(d: Optional[Device]) -> Optional[dict]:
    if d is None:
        return None
    return {
        "id": d.id,
        "hostname": d.hostname,
        "ip": d.ip,
        "deviceType": d.device_type,
        "createdAt": as_utc(d.created_at),
    }


def report_dict(r: BackupReport) -> dict:
    return {
        "id": r.id,
        "deviceId": r.device_id,
        "status": r.status,
        "time": as_utc(r.time),
        "size": r.size,
        "sizeBytes": r.size_bytes,
        "duration": r.duration,
        "jobName": r.job_name,
        "errorMessage": r.error_message,
        "fileCount": r.file_count,
        "sourcePath": r.source_path,
        "destinationPath": r.destination_path,
        "compressionRatio": r.compression_ratio,
        "changedFiles": r.changed_files,
        "deletedFiles": r.deleted_files,
        "addedFiles": r.added_files,
        "modifiedFiles": r.modified_files,
        "examiningFiles": r.examining_files,
        "wasVerified": r.was_verified,
        "verificationResult": r.verification_result,
        "verificationErrors": r.verification_errors,
        "lastVerification": as_utc(r.last_verification),
        "metadata": r.meta or {},
        "receivedAt": as_utc(r.received_at),
    }


def alert_dict(a: Optional[Alert]) -> Optional[dict]:
    if a is None:
        return None
    return {
        "id": a.id,
        "deviceId": a.device_id,
        "title": a.title,
        "message": a.message,
        "severity": a.severity,
        "time": as_utc(a.time),
        "isRead": a.is_read,
    }


def api_key_dict(k: ApiKey) -> dict:
    return {
        "id": k.id,
        "name": k.name,
        "prefix": k.prefix,
        "deviceId": k.device_id,
        "createdAt": as_utc(k.created_at),
        "expiresAt": as_utc(k.expires_at),
        "lastUsed": as_utc(k.last_used),
        "isActive": k.is_active,
    }


def user_dict(u: User) -> dict:
    return {"id": u.id, "username": u.username, "role": u.role}
