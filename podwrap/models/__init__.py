"""Data models for podwrap modules."""

from .module import (
    PACKAGE_PREFIX,
    BuildOptions,
    BuildResult,
    LayoutEntry,
    LifecycleStage,
    ModuleDescriptor,
    ModuleStatus,
    StatusRecord,
    TargetOutcome,
    TestResult,
    UploadOptions,
    UploadResult,
    ValidationResult,
    package_name_for,
)

__all__ = [
    "PACKAGE_PREFIX",
    "BuildOptions",
    "BuildResult",
    "LayoutEntry",
    "LifecycleStage",
    "ModuleDescriptor",
    "ModuleStatus",
    "StatusRecord",
    "TargetOutcome",
    "TestResult",
    "UploadOptions",
    "UploadResult",
    "ValidationResult",
    "package_name_for",
]
