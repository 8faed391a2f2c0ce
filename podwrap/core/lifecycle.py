"""Module lifecycle: skeleton, build, check, test, upload, uninstall.

Every operation is parameterised by its arguments and the module directory
as it is on disk when called; nothing is kept between calls. Stages are not
forced into order, each one only needs its own inputs to exist.
"""
from pathlib import Path
from typing import Optional, Union

from podwrap.core import layout
from podwrap.core.config import PodwrapConfig, get_config
from podwrap.core.errors import (
    BuildError,
    CommandTimeoutError,
    MalformedModuleError,
    TestFailure,
    ToolRunError,
    UploadError,
)
from podwrap.core.logger import get_logger
from podwrap.core.status import derive_status, write_record
from podwrap.core.validator import ModuleLayoutValidator
from podwrap.models.module import (
    PACKAGE_PREFIX,
    BuildOptions,
    BuildResult,
    LifecycleStage,
    ModuleDescriptor,
    ModuleStatus,
    TargetOutcome,
    TestResult,
    UploadOptions,
    UploadResult,
    ValidationResult,
    package_name_for,
)
from podwrap.scaffold.core import ScaffoldManager
from podwrap.services.container_engine import EXAMPLES_DIR, ContainerEngine
from podwrap.services.git_manager import GitManager
from podwrap.services.packager import Packager
from podwrap.services.process import INPUTS_PLACEHOLDER, ProcessRunner

logger = get_logger(__name__)

CODE_SHARING = "code_sharing"
CONTAINER_REGISTRY = "container_registry"

# Runs the module example from the mounted input directory
EXAMPLE_RUNNER = f"""#!/bin/sh
set -e
sh {EXAMPLES_DIR}/example.sh
"""


class LifecycleOrchestrator:
    """Drives a module through its lifecycle stages."""

    def __init__(
        self,
        config: Optional[PodwrapConfig] = None,
        mock: bool = False,
        runner: Optional[ProcessRunner] = None,
        engine: Optional[ContainerEngine] = None,
        packager: Optional[Packager] = None,
        git: Optional[GitManager] = None,
        validator: Optional[ModuleLayoutValidator] = None,
        scaffold: Optional[ScaffoldManager] = None,
    ):
        self.config = config or get_config()
        self.runner = runner or ProcessRunner(mock=mock)
        self.engine = engine or ContainerEngine(self.runner, executable=self.config.container_engine)
        self.packager = packager or Packager(self.runner, python=self.config.python)
        self.git = git or GitManager(self.runner, executable=self.config.git)
        self.validator = validator or ModuleLayoutValidator()
        self.scaffold = scaffold or ScaffoldManager()

    # Skeleton

    def create_skeleton(self, descriptor: ModuleDescriptor, target_parent_dir: Union[str, Path]) -> Path:
        """Create the module directory and render every template.

        Returns:
            Path of the new module (``target_parent_dir / package_name``)

        Raises:
            AlreadyExistsError: If the module path exists
        """
        module_path = self.scaffold.scaffold_module(
            descriptor, Path(target_parent_dir), tag=self.config.default_tag
        )
        write_record(module_path, LifecycleStage.SKELETON)
        return module_path

    # Build

    def build(self, path: Union[str, Path], options: Optional[BuildOptions] = None) -> BuildResult:
        """Build the package wheel and, optionally, the container images.

        Raises:
            BuildError: If the package builder, installer or image build fails
            MalformedModuleError: If the module identity cannot be read
        """
        path = Path(path)
        options = options or BuildOptions()
        descriptor = self.validator.identities(path)
        timeout = self.config.build_timeout
        result = BuildResult(path=path)
        outputs = []

        dist = path / layout.DIST_DIR
        built = self.packager.build_wheel(path, dist, timeout=timeout)
        outputs.append(built.output)
        if not built.ok:
            raise BuildError.from_result("build", path, "Package build failed", built)
        self._log_output(built, options.verbose)

        result.artifact = self.packager.find_wheel(dist, descriptor.package_name)
        if result.artifact:
            logger.info(f"✓ Built {result.artifact.name}")

        if options.install:
            installed = self.packager.install(result.artifact or path, timeout=timeout)
            outputs.append(installed.output)
            if not installed.ok:
                raise BuildError.from_result("build", path, "Package install failed", installed)
            self._log_output(installed, options.verbose)
            result.installed = True

        if options.build_image:
            tags = [options.tag] if options.tag else layout.build_tags(path)
            if not tags:
                raise BuildError("build", path, f"No container build spec under {layout.CONTAINER_DIR}/")
            for tag in tags:
                context_dir = path / layout.CONTAINER_DIR / tag
                if not (context_dir / layout.BUILD_SPEC_FILE).is_file():
                    raise BuildError("build", path, f"No build spec for tag '{tag}': {layout.build_spec(tag)}")
                image = self.engine.build(context_dir, descriptor.image, tag, timeout=timeout)
                outputs.append(image.output)
                if not image.ok:
                    raise BuildError.from_result(
                        "build", path, f"Image build failed for {descriptor.image}:{tag}", image
                    )
                self._log_output(image, options.verbose)
                result.images.append(f"{descriptor.image}:{tag}")

        result.output = "\n".join(o for o in outputs if o)
        write_record(path, LifecycleStage.BUILT)
        return result

    # Check / identities / status

    def check(self, path: Union[str, Path]) -> ValidationResult:
        """Validate layout and content; problems are reported on the result."""
        path = Path(path)
        result = self.validator.check(path)
        if result.ok:
            write_record(path, LifecycleStage.CHECKED)
        return result

    def validate(self, path: Union[str, Path]) -> ValidationResult:
        return self.validator.validate(path)

    def identities(self, path: Union[str, Path]) -> ModuleDescriptor:
        return self.validator.identities(path)

    def status(self, path: Union[str, Path]) -> ModuleStatus:
        """Effective lifecycle stage of the module."""
        path = Path(path)
        validation = self.validator.validate(path)
        package_name = None
        try:
            package_name = self.validator.identities(path).package_name
        except MalformedModuleError as e:
            logger.debug(f"Identity unavailable for status: {e}")
        return derive_status(path, validation, package_name)

    # Test

    def test(self, path: Union[str, Path], tag: Optional[str] = None) -> TestResult:
        """Run the example script inside the module image.

        A missing image or a non-zero exit is reported as a TestFailure on the
        result; it is not raised.

        Raises:
            MalformedModuleError: If the module identity cannot be read
            CommandTimeoutError: If the run exceeds the configured timeout
        """
        path = Path(path)
        tag = tag or self.config.default_tag
        descriptor = self.validator.identities(path)
        reference = f"{descriptor.image}:{tag}"
        result = TestResult(path=path, image=reference)

        example = path / layout.EXAMPLE_SCRIPT
        if not example.is_file():
            result.failure = TestFailure("test", path, f"Example script not found: {layout.EXAMPLE_SCRIPT}")
            return result

        if not self.engine.image_exists(descriptor.image, tag):
            result.failure = TestFailure(
                "test", path, f"Image {reference} not found; run build with --build-image first"
            )
            return result

        logger.info(f"Running {layout.EXAMPLE_SCRIPT} in {reference}")
        run = self.engine.run(
            descriptor.image,
            tag=tag,
            command=[f"{EXAMPLES_DIR}/run.sh"],
            volumes={INPUTS_PLACEHOLDER: EXAMPLES_DIR},
            entrypoint="sh",
            input_files={"example.sh": example.read_text(), "run.sh": EXAMPLE_RUNNER},
            timeout=self.config.test_timeout,
        )
        result.exit_code = run.exit_code
        result.stdout = run.stdout
        result.stderr = run.stderr

        if not run.ok:
            result.failure = TestFailure.from_result(
                "test", path, f"Example exited with code {run.exit_code}", run
            )
            logger.error(f"✗ Example failed in {reference} (exit {run.exit_code})")
            return result

        logger.info("✓ Example ran successfully")
        write_record(path, LifecycleStage.TESTED)
        return result

    # Upload

    def upload(self, path: Union[str, Path], options: Optional[UploadOptions] = None) -> UploadResult:
        """Push source to the code host and/or images to the registry.

        Each requested target gets its own outcome; one failing does not stop
        the other.
        """
        path = Path(path)
        options = options or UploadOptions()
        descriptor = self.validator.identities(path)
        result = UploadResult(path=path)

        if not options.code_sharing and not options.container_registry:
            logger.warning("Nothing to upload: enable code sharing and/or container registry")
            return result

        if options.code_sharing:
            result.targets[CODE_SHARING] = self._upload_code(path, descriptor, options.message)

        if options.container_registry:
            result.targets[CONTAINER_REGISTRY] = self._upload_images(path, descriptor)

        if result.success:
            write_record(path, LifecycleStage.UPLOADED)
        else:
            logger.error(f"Upload failed for: {', '.join(result.failed)}")
        return result

    def _upload_code(self, path: Path, descriptor: ModuleDescriptor, message: str) -> TargetOutcome:
        try:
            pushed = self.git.publish(path, descriptor.url, message, timeout=self.config.push_timeout)
        except CommandTimeoutError as e:
            return TargetOutcome(CODE_SHARING, False, detail=str(e), error=e)

        if not pushed.ok:
            error = UploadError(
                CODE_SHARING, "upload", path, f"Publishing to {descriptor.url} failed",
                command=pushed.args, exit_code=pushed.exit_code,
                stdout=pushed.stdout, stderr=pushed.stderr,
            )
            return TargetOutcome(CODE_SHARING, False, detail=error.message, error=error)

        logger.info(f"✓ Pushed source to {descriptor.url}")
        return TargetOutcome(CODE_SHARING, True, detail=descriptor.url)

    def _upload_images(self, path: Path, descriptor: ModuleDescriptor) -> TargetOutcome:
        tags = layout.build_tags(path)
        if not tags:
            error = UploadError(
                CONTAINER_REGISTRY, "upload", path, f"No container build spec under {layout.CONTAINER_DIR}/"
            )
            return TargetOutcome(CONTAINER_REGISTRY, False, detail=error.message, error=error)

        pushed = []
        for tag in tags:
            reference = f"{descriptor.image}:{tag}"
            if not self.engine.image_exists(descriptor.image, tag):
                error = UploadError(
                    CONTAINER_REGISTRY, "upload", path,
                    f"Image {reference} not found; run build with --build-image first",
                )
                return TargetOutcome(CONTAINER_REGISTRY, False, detail=error.message, error=error)
            try:
                run = self.engine.push(descriptor.image, tag, timeout=self.config.push_timeout)
            except CommandTimeoutError as e:
                return TargetOutcome(CONTAINER_REGISTRY, False, detail=str(e), error=e)
            if not run.ok:
                error = UploadError(
                    CONTAINER_REGISTRY, "upload", path, f"Pushing {reference} failed",
                    command=run.args, exit_code=run.exit_code,
                    stdout=run.stdout, stderr=run.stderr,
                )
                return TargetOutcome(CONTAINER_REGISTRY, False, detail=error.message, error=error)
            pushed.append(reference)

        logger.info(f"✓ Pushed {', '.join(pushed)}")
        return TargetOutcome(CONTAINER_REGISTRY, True, detail=", ".join(pushed))

    # Uninstall

    def uninstall(self, identity_or_path: Union[str, Path]) -> None:
        """Remove the installed package and local images of a module.

        Accepts a module path, a package name or a program name. Succeeds
        silently when nothing is installed.

        Raises:
            ToolRunError: If removing an installed package or image fails
        """
        identity = str(identity_or_path).strip()
        if not identity:
            raise MalformedModuleError(identity, "empty module identity")

        module_path = Path(identity)
        image = None
        if module_path.is_dir() and (module_path / layout.METADATA_FILE).is_file():
            descriptor = self.validator.identities(module_path)
            package_name = descriptor.package_name
            image = descriptor.image
        else:
            module_path = None
            if identity.startswith(PACKAGE_PREFIX):
                package_name = identity
            else:
                package_name = package_name_for(identity)

        if self.packager.is_installed(package_name):
            removed = self.packager.uninstall(package_name)
            if not removed.ok:
                raise ToolRunError.from_result("uninstall", module_path, f"Uninstalling {package_name} failed", removed)
            logger.info(f"✓ Uninstalled {package_name}")
        else:
            logger.info(f"{package_name} is not installed")

        references = self.engine.list_images(package_name)
        if image is not None:
            # Same package name under other accounts belongs to other modules
            references = [r for r in references if r.rsplit(":", 1)[0] == image]
        for reference in references:
            removed = self.engine.remove_image(reference)
            if not removed.ok:
                raise ToolRunError.from_result("uninstall", module_path, f"Removing image {reference} failed", removed)
            logger.info(f"✓ Removed image {reference}")

        if module_path is not None:
            write_record(module_path, LifecycleStage.UNINSTALLED)

    @staticmethod
    def _log_output(result, verbose: bool) -> None:
        if verbose and result.output:
            logger.info(result.output)
        elif result.output:
            logger.debug(result.output)
