"""Configuration API endpoints"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from services.config_manager import ConfigManager
from services.logger import LOG_LEVELS, get_logger, set_log_level

router = APIRouter()
logger = get_logger(__name__)

NonNegativeInt = Annotated[StrictInt, Field(ge=0)]


class DiffSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lookahead: NonNegativeInt | None = None
    contextLines: NonNegativeInt | None = None


class ScholarSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    apiKey: StrictStr | None = None
    baseUrl: StrictStr | None = None
    rateLimitDelay: Annotated[float, Field(ge=0)] | None = None
    maxRetries: NonNegativeInt | None = None
    initialRetryDelay: Annotated[float, Field(ge=0)] | None = None
    timeout: Annotated[float, Field(gt=0)] | None = None


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    diff: dict | None = None
    semanticScholar: dict | None = None
    logLevel: str | None = None


class ConfigResponse(BaseModel):
    """Configuration response"""

    diff: dict
    semanticScholar: dict
    logLevel: str


def mask_key(key: str) -> str:
    """Mask API keys for display"""
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


def validate_section(name: Literal["diff", "semanticScholar"], values: dict[str, Any]) -> dict[str, Any]:
    """Check one settings section; returns only the keys that were sent. Bad values give 400."""
    model = DiffSettings if name == "diff" else ScholarSettings
    try:
        settings = model.model_validate(values)
    except ValidationError as e:
        problems = "; ".join(f"{name}.{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise HTTPException(status_code=400, detail=f"Invalid settings: {problems}")
    return settings.model_dump(exclude_unset=True, exclude_none=True)


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration"""
    config = ConfigManager.get_instance().get_config()

    scholar = config.get("semanticScholar", {}).copy()
    scholar["apiKey"] = mask_key(scholar.get("apiKey", ""))

    return ConfigResponse(
        diff=config.get("diff", {}),
        semanticScholar=scholar,
        logLevel=config.get("logLevel", "INFO"),
    )


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration; only the provided sections change.

    Every section is validated before anything is saved.
    """
    config_manager = ConfigManager.get_instance()

    diff = validate_section("diff", request.diff) if request.diff else None
    scholar = validate_section("semanticScholar", request.semanticScholar) if request.semanticScholar else None
    log_level = request.logLevel.upper() if request.logLevel else None
    if log_level and log_level not in LOG_LEVELS:
        raise HTTPException(status_code=400, detail=f"logLevel must be one of {', '.join(LOG_LEVELS)}")

    if diff:
        config_manager.update_section("diff", diff)
    if scholar:
        config_manager.update_section("semanticScholar", scholar)
    if log_level:
        config_manager.set("logLevel", log_level)
        set_log_level(log_level)
        logger.info("Log level set to %s", log_level)

    return {"status": "success", "message": "Configuration updated"}
