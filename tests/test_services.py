"""Tests for the build context and deploy services"""

import asyncio
import os
import threading
from typing import List

import pytest

from compose_deploy.api.exceptions import (
    DockerfileNotFoundError,
    OperationCancelledError,
    UploadError,
    ValidationError,
)
from compose_deploy.models.compose import BuildConfig, Project, ServiceConfig
from compose_deploy.models.config import Settings
from compose_deploy.services.build_context_service import BuildContextService
from compose_deploy.services.deploy_service import DeployService
from compose_deploy.storage.base import UploadUrlProvider
from compose_deploy.storage.http_upload import HttpUploader


class RecordingUrlProvider(UploadUrlProvider):
    """Hands out one URL per request path and records digests"""

    def __init__(self, base_url: str):
        self.base_url = base_url
        self.digests: List[str] = []

    async def create_upload_url(self, digest: str) -> str:
        self.digests.append(digest)
        return f"{self.base_url}?signature=secret"


class SlowUrlProvider(UploadUrlProvider):
    """Takes a while to hand out its URL"""

    def __init__(self, url: str, delay: float):
        self.url = url
        self.delay = delay

    async def create_upload_url(self, digest: str) -> str:
        await asyncio.sleep(self.delay)
        return self.url


COMPOSE = """
services:
  web:
    build: ./web
    ports:
      - target: 8080
        mode: ingress
        protocol: http
  db:
    image: postgres
    networks: [backend]
"""


@pytest.fixture
def project_dir(tmp_path, make_tree, write_compose):
    make_tree({"Dockerfile": "FROM scratch\n", "app.py": ""}, root=tmp_path / "web")
    write_compose(COMPOSE)
    return tmp_path


@pytest.mark.asyncio
class TestBuildContextService:

    async def test_dry_run_returns_local_root(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        service = BuildContextService(Settings(dry_run=True))

        result = await service.get_remote_build_context("web", BuildConfig(context=str(root)))

        assert result.url == str(root)
        assert result.uploaded is False
        assert result.digest.startswith("sha256-")

    async def test_force_skips_digest(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        service = BuildContextService(Settings(dry_run=True))

        result = await service.get_remote_build_context("web", BuildConfig(context=str(root)), force=True)
        assert result.digest is None

    async def test_upload(self, make_tree, httpserver):
        httpserver.expect_request("/ctx/web", method="PUT").respond_with_data("", status=200)
        provider = RecordingUrlProvider(httpserver.url_for("/ctx/web"))
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        service = BuildContextService(Settings(), HttpUploader(provider))

        result = await service.get_remote_build_context("web", BuildConfig(context=str(root)))

        assert result.url == httpserver.url_for("/ctx/web")
        assert result.uploaded is True
        assert provider.digests == [result.digest]

    async def test_forced_upload_sends_empty_digest(self, make_tree, httpserver):
        httpserver.expect_request("/ctx/web", method="PUT").respond_with_data("", status=200)
        provider = RecordingUrlProvider(httpserver.url_for("/ctx/web"))
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        service = BuildContextService(Settings(force=True), HttpUploader(provider))

        await service.get_remote_build_context("web", BuildConfig(context=str(root)))
        assert provider.digests == [""]

    async def test_upload_requires_destination(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        with pytest.raises(UploadError):
            await BuildContextService(Settings()).get_remote_build_context(
                "web", BuildConfig(context=str(root)))

    async def test_packaging_errors_propagate(self, make_tree):
        root = make_tree({"main.py": ""})
        with pytest.raises(DockerfileNotFoundError):
            await BuildContextService(Settings(dry_run=True)).pack(str(root))

    async def test_cancellation_propagates(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n"})
        task = asyncio.ensure_future(BuildContextService(Settings()).pack(str(root)))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


    async def test_cancellation_stops_packaging_thread(self, make_tree):
        root = make_tree({"Dockerfile": "FROM scratch\n", "blob.bin": os.urandom(64 * 1024)})
        service = BuildContextService(Settings())
        loop = asyncio.get_event_loop()
        started = threading.Event()
        finished = threading.Event()
        outcome = {}
        package = service.packer.package

        def blocking_package(root, dockerfile, cancel_event):
            started.set()
            cancel_event.wait(5)
            try:
                outcome["result"] = package(root, dockerfile, cancel_event)
            except Exception as e:
                outcome["error"] = e
            finally:
                finished.set()

        service.packer.package = blocking_package
        task = asyncio.ensure_future(service.pack(str(root)))
        assert await loop.run_in_executor(None, started.wait, 5)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await loop.run_in_executor(None, finished.wait, 5)
        assert "result" not in outcome
        assert isinstance(outcome["error"], OperationCancelledError)

    async def test_failure_cancels_sibling_services(self, tmp_path, make_tree, httpserver):
        httpserver.expect_request("/ctx", method="PUT").respond_with_data("", status=200)
        bad = make_tree({"main.py": ""}, root=tmp_path / "a")
        good = make_tree({"Dockerfile": "FROM scratch\n"}, root=tmp_path / "b")
        project = Project(name="shop", services={
            "a": ServiceConfig(name="a", build=BuildConfig(context=str(bad))),
            "b": ServiceConfig(name="b", build=BuildConfig(context=str(good))),
        })
        provider = SlowUrlProvider(httpserver.url_for("/ctx"), delay=0.3)
        service = BuildContextService(Settings(), HttpUploader(provider))

        with pytest.raises(DockerfileNotFoundError):
            await service.prepare_build_contexts(project)
        await asyncio.sleep(0.6)

        assert len(httpserver.log) == 0


@pytest.mark.asyncio
class TestDeployService:

    async def test_prepare_deployment_dry_run(self, project_dir):
        service = DeployService(Settings(dry_run=True, tenant="Acme"))

        plan = await service.prepare_deployment(str(project_dir / "compose.yaml"))

        assert plan.request.project == "acme"
        assert [s.name for s in plan.request.services] == ["db", "web"]
        web = plan.request.services[1]
        assert web.build.context == str(project_dir / "web")
        assert plan.build_contexts["web"].uploaded is False
        # db uses an undeclared network
        assert plan.had_warnings

    async def test_prepare_deployment_uploads(self, project_dir, httpserver):
        httpserver.expect_request("/ctx/web", method="PUT").respond_with_data("", status=200)
        provider = RecordingUrlProvider(httpserver.url_for("/ctx/web"))
        service = DeployService(Settings(tenant="acme"), provider)

        plan = await service.prepare_deployment(str(project_dir / "compose.yaml"))

        assert plan.request.services[1].build.context == httpserver.url_for("/ctx/web")
        assert len(provider.digests) == 1

    async def test_project_name_setting_overrides(self, project_dir):
        service = DeployService(Settings(dry_run=True, tenant="acme", project_name="Shop"))
        plan = await service.prepare_deployment(str(project_dir / "compose.yaml"), upload=False)
        assert plan.request.project == "shop"
        assert plan.build_contexts == {}

    async def test_invalid_project_is_rejected(self, write_compose):
        path = write_compose("""
            services:
              web:
                ports: ["80"]
        """)
        with pytest.raises(ValidationError):
            await DeployService(Settings(dry_run=True)).prepare_deployment(str(path))


def test_load_project_collects_loader_warnings(write_compose):
    path = write_compose("""
        services:
          web:
            image: "nginx:${UNSET_TAG_FOR_TESTS}"
    """)
    project, result = DeployService(Settings(tenant="acme")).load_project(str(path))
    assert project.services["web"].image == "nginx:"
    assert any("UNSET_TAG_FOR_TESTS" in w for w in result.warnings)
