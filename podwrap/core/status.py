"""Per-module status record and stage derivation."""
from pathlib import Path
from typing import Optional

import yaml

from podwrap.core import layout
from podwrap.core.logger import get_logger
from podwrap.models.module import LifecycleStage, ModuleStatus, StatusRecord, ValidationResult

logger = get_logger(__name__)


def read_record(module_path: Path) -> Optional[StatusRecord]:
    """Load the status record, or None when absent or unreadable."""
    record_path = module_path / layout.STATUS_FILE
    if not record_path.is_file():
        return None
    try:
        with open(record_path) as f:
            data = yaml.safe_load(f) or {}
        return StatusRecord(stage=LifecycleStage(data['stage']), updated=str(data.get('updated', '')))
    except (yaml.YAMLError, KeyError, ValueError, TypeError) as e:
        logger.warning(f"Ignoring unreadable status record {record_path}: {e}")
        return None


def write_record(module_path: Path, stage: LifecycleStage) -> StatusRecord:
    """Record that ``stage`` completed for the module."""
    record = StatusRecord(stage=stage)
    record_path = module_path / layout.STATUS_FILE
    record_path.parent.mkdir(parents=True, exist_ok=True)
    with open(record_path, 'w') as f:
        yaml.safe_dump(record.to_dict(), f, sort_keys=False)
    logger.debug(f"Recorded stage {stage.value} for {module_path}")
    return record


def derive_status(module_path: Path, validation: ValidationResult, package_name: Optional[str]) -> ModuleStatus:
    """Combine the recorded stage with what is actually on disk.

    A record is trusted only as far as artifacts back it: without a valid
    layout there is no stage, and any stage past ``skeleton`` needs a built
    wheel in dist/.
    """
    record = read_record(module_path)
    recorded = record.stage if record else None

    wheel_present = False
    if package_name:
        dist = module_path / layout.DIST_DIR
        wheel_present = dist.is_dir() and any(dist.glob(f"{package_name}-*.whl"))

    status = ModuleStatus(
        path=module_path,
        stage=None,
        recorded=recorded,
        artifacts={
            'layout': not validation.missing,
            'wheel': wheel_present,
            'record': record is not None,
        },
    )

    if not module_path.is_dir():
        status.artifacts['layout'] = False
        status.notes.append(f"Module directory not found: {module_path}")
        return status

    if validation.missing:
        status.notes.append(f"Missing: {', '.join(validation.missing)}")
        return status

    if recorded is None:
        status.stage = LifecycleStage.SKELETON
        status.notes.append("No status record, assuming skeleton")
        return status

    if recorded == LifecycleStage.UNINSTALLED:
        status.stage = recorded
        return status

    if recorded.rank > LifecycleStage.SKELETON.rank and not wheel_present:
        status.stage = LifecycleStage.SKELETON
        status.notes.append(f"Recorded '{recorded.value}' but no wheel in {layout.DIST_DIR}/")
        return status

    status.stage = recorded
    return status
