"""Tests for repository configuration loading and selection."""
import json

import pytest

from workitem_codegen.core.exceptions import ConfigurationError
from workitem_codegen.core.repositories import default_repository, load_repositories, select_repository
from workitem_codegen.schemas.generation import ProgrammingLanguage, RepositoryConfig

pytestmark = pytest.mark.unit


def _repo(repo_id: str, *paths: str) -> RepositoryConfig:
    return RepositoryConfig(id=repo_id, name=repo_id, area_path_mappings={path: repo_id for path in paths})


class TestSelectRepository:
    def test_most_specific_mapping_wins(self):
        repositories = [_repo("web", "Shop"), _repo("payments", "Shop\\Payments")]
        assert select_repository("Shop\\Payments\\Cards", repositories).id == "payments"
        assert select_repository("Shop\\Catalog", repositories).id == "web"

    def test_first_repository_is_default(self):
        repositories = [_repo("web", "Shop"), _repo("ops", "Ops")]
        assert select_repository("Marketing", repositories).id == "web"
        assert select_repository("", repositories).id == "web"

    def test_empty_list(self):
        with pytest.raises(ConfigurationError):
            select_repository("Shop", [])


class TestLoadRepositories:
    def test_default_without_file(self, settings):
        repositories = load_repositories(settings)
        assert [r.id for r in repositories] == ["default"]
        assert repositories[0].target_language == ProgrammingLanguage.TYPESCRIPT

    def test_from_file(self, settings, tmp_path):
        path = tmp_path / "repositories.json"
        path.write_text(json.dumps([
            {"id": "api", "name": "API", "target_language": "python", "area_path_mappings": {"Shop\\Api": "api"}},
        ]))

        repositories = load_repositories(settings.model_copy(update={"repositories_file": str(path)}))

        assert repositories[0].target_language == ProgrammingLanguage.PYTHON
        assert repositories[0].resolved_project_context().project_name == "API"

    @pytest.mark.parametrize("content", ["not json", "[]", '[{"name": "missing id"}]'])
    def test_invalid_file(self, settings, tmp_path, content):
        path = tmp_path / "repositories.json"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            load_repositories(settings.model_copy(update={"repositories_file": str(path)}))

    def test_missing_file(self, settings, tmp_path):
        with pytest.raises(ConfigurationError):
            load_repositories(settings.model_copy(update={"repositories_file": str(tmp_path / "absent.json")}))

    def test_default_templates_cover_every_type(self):
        covered = {t for template in default_repository().code_templates for t in template.work_item_types}
        assert covered == {"User Story", "Bug", "Task"}
