"""Module lifecycle commands: skeleton, build, check, test, upload, uninstall."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from podwrap.cli_support import (
    get_orchestrator,
    handle_cli_error,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from podwrap.core.config import get_config
from podwrap.core.errors import PodwrapError
from podwrap.models.module import BuildOptions, ModuleDescriptor, UploadOptions, ValidationResult


def _print_validation(console: Console, result: ValidationResult) -> None:
    table = Table(title=f"Module layout: {result.path}", show_header=True, header_style="bold cyan")
    table.add_column("Entry", style="cyan")
    table.add_column("Required", width=9)
    table.add_column("Status", width=9)

    for entry in result.entries:
        status = "[green]✓[/green]" if entry.present else ("[red]missing[/red]" if entry.required else "[yellow]missing[/yellow]")
        table.add_row(escape(entry.name), "yes" if entry.required else "no", status)

    console.print(table)

    for error in result.errors:
        print_error(console, escape(error))
    for warning in result.warnings:
        print_warning(console, escape(warning))


def register_module_commands(root: typer.Typer, console: Console) -> None:
    """Attach module lifecycle commands to the main CLI."""

    @root.command("create-skeleton")
    def create_skeleton(
        repo_user: str = typer.Option(..., "--repo-user", help="Code-host account owning the module repository"),
        program_name: str = typer.Option(..., "--program-name", help="Program to wrap (also the Python function name)"),
        docker_user: str = typer.Option(..., "--docker-user", help="Container registry account"),
        path: Path = typer.Option(Path("."), "--path", help="Parent directory for the new module"),
        service: Optional[str] = typer.Option(None, "--service", help="Code host: github, gitlab or bitbucket (default from config)"),
        cmd: Optional[str] = typer.Option(None, "--cmd", help="Command run in the container (default: program name)"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on error"),
    ):
        """Create a new module skeleton."""
        try:
            descriptor = ModuleDescriptor(
                program_name=program_name,
                cmd=cmd or program_name,
                docker_user=docker_user,
                repo_user=repo_user,
                service=service or get_config().default_service,
            )
        except ValidationError as e:
            print_error(console, "Invalid module identity:")
            for err in e.errors():
                field = ".".join(str(loc) for loc in err.get("loc", ())) or "module"
                console.print(f"  [yellow]{field}[/yellow]: {escape(err.get('msg', ''))}")
            raise typer.Exit(1)

        try:
            module_path = get_orchestrator().create_skeleton(descriptor, path)
        except PodwrapError as e:
            handle_cli_error(e, console, verbose)

        print_success(console, f"Created module {descriptor.package_name} at {module_path}")
        print_info(console, f"Edit container/latest/Dockerfile and examples/example.sh, then run 'podwrap build --path {module_path} --build-image'")

    @root.command("build")
    def build(
        path: Path = typer.Option(Path("."), "--path", help="Module directory"),
        build_image: bool = typer.Option(False, "--build-image", help="Also build the container image(s)"),
        tag: Optional[str] = typer.Option(None, "--tag", help="Only build this container tag"),
        install: bool = typer.Option(True, "--install/--no-install", help="Install the built package locally"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tool output"),
    ):
        """Build the module package and optionally its container image."""
        options = BuildOptions(build_image=build_image, verbose=verbose, tag=tag, install=install)
        try:
            result = get_orchestrator().build(path, options)
        except PodwrapError as e:
            handle_cli_error(e, console, verbose)

        if result.artifact:
            print_success(console, f"Package: {result.artifact}")
        else:
            print_success(console, "Package built")
        if result.installed:
            print_success(console, "Installed locally")
        for image in result.images:
            print_success(console, f"Image: {image}")

    @root.command("check")
    def check(
        path: Path = typer.Option(Path("."), "--path", help="Module directory"),
    ):
        """Check the module layout, metadata and container build files."""
        result = get_orchestrator().check(path)
        _print_validation(console, result)

        if not result.ok:
            print_error(console, "Module check failed")
            raise typer.Exit(1)
        print_success(console, "Module looks good")

    @root.command("identities")
    def identities(
        path: Path = typer.Option(Path("."), "--path", help="Module directory"),
        format: str = typer.Option("table", "--format", "-f", help="Output format: table|json"),
    ):
        """Show the identity recovered from the module files."""
        try:
            descriptor = get_orchestrator().identities(path)
        except PodwrapError as e:
            handle_cli_error(e, console)

        fields = {
            "program_name": descriptor.program_name,
            "cmd": descriptor.cmd,
            "package_name": descriptor.package_name,
            "image": descriptor.image,
            "repo": descriptor.repo,
            "url": descriptor.url,
            "service": descriptor.service,
        }

        if format == "json":
            console.print_json(json.dumps(fields))
            return

        table = Table(title="Module identity", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for key, value in fields.items():
            table.add_row(key, value)
        console.print(table)

    @root.command("test")
    def test(
        path: Path = typer.Option(Path("."), "--path", help="Module directory"),
        tag: Optional[str] = typer.Option(None, "--tag", help="Container tag to test (default: latest)"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on error"),
    ):
        """Run the module example inside its container."""
        try:
            result = get_orchestrator().test(path, tag=tag)
        except PodwrapError as e:
            handle_cli_error(e, console, verbose)

        if result.stdout:
            console.print(escape(result.stdout.rstrip()))

        if not result.success:
            print_error(console, f"Test failed for {result.image}")
            console.print(escape(str(result.failure)))
            raise typer.Exit(1)
        print_success(console, f"Example ran in {result.image}")

    @root.command("upload")
    def upload(
        path: Path = typer.Option(Path("."), "--path", help="Module directory"),
        code_sharing: bool = typer.Option(False, "--code-sharing", help="Push source to the code host"),
        container_registry: bool = typer.Option(False, "--container-registry", help="Push images to the registry"),
        message: str = typer.Option("Update module", "--message", "-m", help="Commit message for code sharing"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on error"),
    ):
        """Publish the module source and/or container images."""
        if not code_sharing and not container_registry:
            print_warning(console, "Nothing to upload. Use --code-sharing and/or --container-registry.")
            return

        options = UploadOptions(code_sharing=code_sharing, container_registry=container_registry, message=message)
        try:
            result = get_orchestrator().upload(path, options)
        except PodwrapError as e:
            handle_cli_error(e, console, verbose)

        for name, outcome in result.targets.items():
            if outcome.success:
                print_success(console, f"{name}: {escape(outcome.detail)}")
            else:
                print_error(console, f"{name}: {escape(str(outcome.error or outcome.detail))}")

        if not result.success:
            raise typer.Exit(1)

    @root.command("uninstall")
    def uninstall(
        identity: str = typer.Option(..., "--identity", help="Module path, package name or program name"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on error"),
    ):
        """Remove the installed package and local images of a module."""
        try:
            get_orchestrator().uninstall(identity)
        except PodwrapError as e:
            handle_cli_error(e, console, verbose)
        print_success(console, f"Uninstalled {identity}")

    @root.command("status")
    def status(
        path: Path = typer.Option(Path("."), "--path", help="Module directory"),
    ):
        """Show the lifecycle stage of a module."""
        result = get_orchestrator().status(path)

        stage = result.stage.value if result.stage else "invalid"
        console.print(f"[bold cyan]Stage:[/bold cyan] {stage}")
        if result.recorded and result.recorded != result.stage:
            console.print(f"[dim]Recorded: {result.recorded.value}[/dim]")
        for name, present in result.artifacts.items():
            mark = "[green]✓[/green]" if present else "[red]✗[/red]"
            console.print(f"  {mark} {name}")
        for note in result.notes:
            print_info(console, escape(note))

        if result.stage is None:
            raise typer.Exit(1)
