"""Tests for module skeleton scaffolding."""
import pytest
import yaml

from podwrap.core.errors import AlreadyExistsError
from podwrap.models.module import ModuleDescriptor
from podwrap.scaffold.core import ScaffoldManager


class TestScaffoldManager:
    """Test module skeleton generation."""

    def test_scaffold_figlet_module(self, tmp_path, figlet):
        """Skeleton has a build file, a stub with the command and an example."""
        module_path = ScaffoldManager().scaffold_module(figlet, tmp_path)

        assert module_path == tmp_path / "pw_figlet"
        assert (module_path / "container" / "latest" / "Dockerfile").is_file()
        assert (module_path / "examples" / "example.sh").is_file()

        stub = (module_path / "src" / "pw_figlet" / "functions.py").read_text()
        assert "cmd='figlet'" in stub
        assert "def figlet(" in stub
        assert "image='d/pw_figlet'" in stub

    def test_example_script_is_executable(self, module_dir):
        example = module_dir / "examples" / "example.sh"
        assert example.stat().st_mode & 0o111

    def test_metadata_file(self, module_dir):
        metadata = yaml.safe_load((module_dir / "module.yml").read_text())
        assert metadata['package'] == "pw_figlet"
        assert metadata['program'] == "figlet"
        assert metadata['command'] == "figlet"
        assert metadata['url'] == "https://github.com/r/pw_figlet"
        assert metadata['docker_user'] == "d"
        assert metadata['repo_user'] == "r"

    def test_no_placeholders_left(self, module_dir):
        tokens = [
            "%program_name%", "%package_name%", "%cmd%", "%cmd_yaml%", "%cmd_literal%",
            "%url%", "%docker_user%", "%repo_user%",
        ]
        for path in module_dir.rglob("*"):
            if path.is_file():
                content = path.read_text()
                for token in tokens:
                    assert token not in content, f"{token} left in {path}"

    def test_existing_path_rejected(self, tmp_path, figlet):
        manager = ScaffoldManager()
        manager.scaffold_module(figlet, tmp_path)

        with pytest.raises(AlreadyExistsError):
            manager.scaffold_module(figlet, tmp_path)

    def test_custom_command(self, tmp_path):
        descriptor = ModuleDescriptor(
            program_name="blastn", cmd="blastn -version", docker_user="d", repo_user="r"
        )
        module_path = ScaffoldManager().scaffold_module(descriptor, tmp_path)

        stub = (module_path / "src" / "pw_blastn" / "functions.py").read_text()
        assert "cmd='blastn -version'" in stub

    @pytest.mark.parametrize("cmd", [
        "figlet -f 'big'",
        'echo "hi there"',
        "tr \\\\n x",
    ])
    def test_quoted_command_gives_valid_files(self, tmp_path, cmd):
        descriptor = ModuleDescriptor(program_name="figlet", cmd=cmd, docker_user="d", repo_user="r")
        module_path = ScaffoldManager().scaffold_module(descriptor, tmp_path)

        stub = (module_path / "src" / "pw_figlet" / "functions.py").read_text()
        compile(stub, "functions.py", "exec")
        metadata = yaml.safe_load((module_path / "module.yml").read_text())
        assert metadata['command'] == cmd

    @pytest.mark.parametrize("service,ci_file,host", [
        ("github", ".github/workflows/module.yml", "https://github.com"),
        ("gitlab", ".gitlab-ci.yml", "https://gitlab.com"),
        ("bitbucket", "bitbucket-pipelines.yml", "https://bitbucket.org"),
    ])
    def test_service_specific_files(self, tmp_path, service, ci_file, host):
        descriptor = ModuleDescriptor(
            program_name="figlet", docker_user="d", repo_user="r", service=service
        )
        module_path = ScaffoldManager().scaffold_module(descriptor, tmp_path)

        assert (module_path / ci_file).is_file()
        assert f"{host}/r/pw_figlet" in (module_path / "module.yml").read_text()

    def test_custom_tag(self, tmp_path, figlet):
        module_path = ScaffoldManager().scaffold_module(figlet, tmp_path, tag="v1")
        assert (module_path / "container" / "v1" / "Dockerfile").is_file()
