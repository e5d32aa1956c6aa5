"""Unit tests for the boto3-backed collaborator bindings.

Clients are real boto3 clients whose requests are intercepted by
``botocore.stub.Stubber``, so parameter names and response shapes are
validated against the service models without network access.
"""

from __future__ import annotations

import typing as typ

import boto3
import pytest
from botocore.stub import Stubber

from dockyard.build import BuildJobSpec, BuildSubmissionFailed, CodeBuildClient
from dockyard.registry import (
    EcrRegistryClient,
    RegistryAlreadyExists,
    RegistryCreateFailed,
    RegistryDeleteFailed,
    RegistryLookupFailed,
)
from dockyard.source import CodeCommitSourceClient, SourceUnavailable

if typ.TYPE_CHECKING:
    from botocore.client import BaseClient

_REGION = "eu-west-1"
_ACCOUNT = "123456789012"
_LOCATION = "https://git-codecommit.eu-west-1.amazonaws.com/v1/repos/portal"


def _client(service: str) -> BaseClient:
    session = boto3.session.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",  # noqa: S106 - placeholder credential
        region_name=_REGION,
    )
    return session.client(service)


def _repository(name: str) -> dict[str, str]:
    return {
        "repositoryName": name,
        "repositoryUri": f"{_ACCOUNT}.dkr.ecr.{_REGION}.amazonaws.com/{name}",
        "repositoryArn": f"arn:aws:ecr:{_REGION}:{_ACCOUNT}:repository/{name}",
    }


class TestCodeCommitSourceClient:
    """CodeCommit requests and error translation."""

    @pytest.mark.asyncio
    async def test_resolve_branch_head(self) -> None:
        """The branch head is read from the branch's commit id."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_response(
                "get_branch",
                {"branch": {"branchName": "main", "commitId": "abc123"}},
                {"repositoryName": "portal", "branchName": "main"},
            )
            head = await CodeCommitSourceClient(client).resolve_branch_head(
                "portal", "main"
            )

        assert head == "abc123"

    @pytest.mark.asyncio
    async def test_missing_branch_is_unavailable(self) -> None:
        """Service errors keep their code on the translated exception."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "get_branch", service_error_code="BranchDoesNotExistException"
            )
            with pytest.raises(SourceUnavailable) as excinfo:
                await CodeCommitSourceClient(client).resolve_branch_head(
                    "portal", "gone"
                )

        assert excinfo.value.code == "BranchDoesNotExistException"

    @pytest.mark.asyncio
    async def test_get_commit_reads_parents(self) -> None:
        """Parents are returned in service order."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_response(
                "get_commit",
                {"commit": {"commitId": "abc123", "parents": ["p1", "p2"]}},
                {"repositoryName": "portal", "commitId": "abc123"},
            )
            commit = await CodeCommitSourceClient(client).get_commit("portal", "abc123")

        assert commit.first_parent == "p1"
        assert commit.parents == ("p1", "p2")

    @pytest.mark.asyncio
    async def test_diff_commits_reads_every_page(self) -> None:
        """Differences are collected across pages."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_response(
                "get_differences",
                {
                    "differences": [
                        {
                            "afterBlob": {"path": "backend/services/api/Dockerfile"},
                            "changeType": "A",
                        }
                    ],
                    "NextToken": "page-2",
                },
                {
                    "repositoryName": "portal",
                    "afterCommitSpecifier": "after1",
                    "beforeCommitSpecifier": "before1",
                },
            )
            stubber.add_response(
                "get_differences",
                {
                    "differences": [
                        {
                            "beforeBlob": {"path": "backend/services/web/Dockerfile"},
                            "changeType": "D",
                        }
                    ]
                },
                {
                    "repositoryName": "portal",
                    "afterCommitSpecifier": "after1",
                    "beforeCommitSpecifier": "before1",
                    "NextToken": "page-2",
                },
            )
            differences = await CodeCommitSourceClient(client).diff_commits(
                "portal", "after1", "before1"
            )

        assert [(d.change_type, d.before_path, d.after_path) for d in differences] == [
            ("A", None, "backend/services/api/Dockerfile"),
            ("D", "backend/services/web/Dockerfile", None),
        ]

    @pytest.mark.asyncio
    async def test_diff_without_base_omits_before_specifier(self) -> None:
        """A root commit is diffed without a before specifier."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_response(
                "get_differences",
                {"differences": []},
                {"repositoryName": "portal", "afterCommitSpecifier": "root1"},
            )
            differences = await CodeCommitSourceClient(client).diff_commits(
                "portal", "root1"
            )

        assert differences == []

    @pytest.mark.asyncio
    async def test_list_folder_returns_sub_folders(self) -> None:
        """Sub-folders are listed with relative and absolute paths."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_response(
                "get_folder",
                {
                    "commitId": "abc123",
                    "folderPath": "backend/services",
                    "subFolders": [
                        {"relativePath": "api", "absolutePath": "backend/services/api"}
                    ],
                },
                {
                    "repositoryName": "portal",
                    "commitSpecifier": "abc123",
                    "folderPath": "backend/services",
                },
            )
            folders = await CodeCommitSourceClient(client).list_folder(
                "portal", "backend/services", "abc123"
            )

        assert [(f.relative_path, f.absolute_path) for f in folders] == [
            ("api", "backend/services/api")
        ]

    @pytest.mark.asyncio
    async def test_list_branches(self) -> None:
        """Branch names are collected from the listing."""
        client = _client("codecommit")
        with Stubber(client) as stubber:
            stubber.add_response(
                "list_branches",
                {"branches": ["main", "feature-1"]},
                {"repositoryName": "portal"},
            )
            branches = await CodeCommitSourceClient(client).list_branches("portal")

        assert branches == ["main", "feature-1"]


class TestEcrRegistryClient:
    """ECR requests and error translation."""

    @pytest.mark.asyncio
    async def test_describe_missing_registry_returns_none(self) -> None:
        """Not-found is an answer, not an error."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "describe_repositories",
                service_error_code="RepositoryNotFoundException",
                expected_params={"repositoryNames": ["customer-portal-api-x"]},
            )
            found = await EcrRegistryClient(client).describe("customer-portal-api-x")

        assert found is None

    @pytest.mark.asyncio
    async def test_describe_other_errors_raise(self) -> None:
        """Access failures are lookup failures carrying the service code."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "describe_repositories", service_error_code="AccessDeniedException"
            )
            with pytest.raises(RegistryLookupFailed) as excinfo:
                await EcrRegistryClient(client).describe("customer-portal-api-x")

        assert excinfo.value.code == "AccessDeniedException"

    @pytest.mark.asyncio
    async def test_create_returns_registry(self) -> None:
        """Created registries are returned with their URI."""
        client = _client("ecr")
        repository = _repository("customer-portal-api-x")
        with Stubber(client) as stubber:
            stubber.add_response(
                "create_repository",
                {"repository": repository},
                {"repositoryName": "customer-portal-api-x"},
            )
            created = await EcrRegistryClient(client).create("customer-portal-api-x")

        assert created.uri == repository["repositoryUri"]

    @pytest.mark.asyncio
    async def test_create_collision_raises_already_exists(self) -> None:
        """A lost creation race is reported distinctly."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "create_repository",
                service_error_code="RepositoryAlreadyExistsException",
            )
            with pytest.raises(RegistryAlreadyExists):
                await EcrRegistryClient(client).create("customer-portal-api-x")

    @pytest.mark.asyncio
    async def test_create_other_failures(self) -> None:
        """Other creation errors are create failures."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "create_repository", service_error_code="LimitExceededException"
            )
            with pytest.raises(RegistryCreateFailed):
                await EcrRegistryClient(client).create("customer-portal-api-x")

    @pytest.mark.asyncio
    async def test_delete_forces_image_removal(self) -> None:
        """Deletion removes the registry together with its images."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_response(
                "delete_repository",
                {},
                {"repositoryName": "customer-portal-api-x", "force": True},
            )
            await EcrRegistryClient(client).delete("customer-portal-api-x")
            stubber.assert_no_pending_responses()

    @pytest.mark.asyncio
    async def test_delete_failure(self) -> None:
        """Deletion errors are translated."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "delete_repository", service_error_code="ServerException"
            )
            with pytest.raises(RegistryDeleteFailed) as excinfo:
                await EcrRegistryClient(client).delete("customer-portal-api-x")

        assert excinfo.value.code == "ServerException"

    @pytest.mark.asyncio
    async def test_list_all_reads_every_page(self) -> None:
        """Registries are collected across pages."""
        client = _client("ecr")
        with Stubber(client) as stubber:
            stubber.add_response(
                "describe_repositories",
                {"repositories": [_repository("a")], "nextToken": "t2"},
                {},
            )
            stubber.add_response(
                "describe_repositories",
                {"repositories": [_repository("b")]},
                {"nextToken": "t2"},
            )
            registries = await EcrRegistryClient(client).list_all()

        assert [registry.name for registry in registries] == ["a", "b"]


def _job() -> BuildJobSpec:
    return BuildJobSpec(
        project_name="image-builds",
        source_version="abc123",
        source_location=_LOCATION,
        service_name="api",
        parameters=(("SERVICE_NAME", "api"), ("BRANCH_NAME", "feature-1")),
    )


class TestCodeBuildClient:
    """CodeBuild submissions."""

    @pytest.mark.asyncio
    async def test_submit_overrides_source_and_environment(self) -> None:
        """Jobs start from the pushed commit with plain-text parameters."""
        client = _client("codebuild")
        with Stubber(client) as stubber:
            stubber.add_response(
                "start_build",
                {"build": {"id": "image-builds:1234"}},
                {
                    "projectName": "image-builds",
                    "sourceVersion": "abc123",
                    "sourceTypeOverride": "CODECOMMIT",
                    "sourceLocationOverride": _LOCATION,
                    "environmentVariablesOverride": [
                        {"name": "SERVICE_NAME", "value": "api", "type": "PLAINTEXT"},
                        {
                            "name": "BRANCH_NAME",
                            "value": "feature-1",
                            "type": "PLAINTEXT",
                        },
                    ],
                },
            )
            build_id = await CodeBuildClient(client).submit(_job())

        assert build_id == "image-builds:1234"

    @pytest.mark.asyncio
    async def test_submit_failure(self) -> None:
        """Rejected submissions carry the service code."""
        client = _client("codebuild")
        with Stubber(client) as stubber:
            stubber.add_client_error(
                "start_build", service_error_code="AccountLimitExceededException"
            )
            with pytest.raises(BuildSubmissionFailed) as excinfo:
                await CodeBuildClient(client).submit(_job())

        assert excinfo.value.code == "AccountLimitExceededException"

    @pytest.mark.asyncio
    async def test_submit_without_build_id(self) -> None:
        """A response without a build id is a failed submission."""
        client = _client("codebuild")
        with Stubber(client) as stubber:
            stubber.add_response("start_build", {})
            with pytest.raises(BuildSubmissionFailed, match="no build id"):
                await CodeBuildClient(client).submit(_job())
