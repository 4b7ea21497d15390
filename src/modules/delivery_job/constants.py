"""Delivery job module constants."""

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

MSG_AGENCY_PROFILE_NOT_FOUND = "Delivery agency profile not found"
MSG_AGENCY_INACTIVE = "Your agency is not active. Contact admin for assistance."
MSG_ASSIGN_INACTIVE_AGENCY = "Cannot assign to inactive agency"

STALE_JOB_TASK_NAME = "src.modules.delivery_job.tasks.report_stale_jobs"


def normalize_city(city: str | None) -> str:
    """Cities are stored title-cased and compared trimmed and lowercased."""
    if not city:
        return ""
    return city.strip().lower()
