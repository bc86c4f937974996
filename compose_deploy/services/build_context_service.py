# compose_deploy/services/build_context_service.py
"""Packaging and upload of service build contexts"""

import asyncio
import logging
import os
import threading
from typing import Dict, Optional

from ..api.exceptions import UploadError
from ..core.context_packer import ContextPacker
from ..models.compose import BuildConfig, Project
from ..models.config import Settings
from ..models.result import BuildContextResult, PackResult
from ..storage.http_upload import HttpUploader
from ..utils.file_utils import format_size


class BuildContextService:
    """Turn build sections into remote build context URLs"""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 uploader: Optional[HttpUploader] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize build context service

        Args:
            settings: Runtime settings (default: Settings())
            uploader: Uploader for archives; required unless dry_run is set
            logger: Diagnostics sink (default: module logger)
        """
        self.settings = settings or Settings()
        self.uploader = uploader
        self.logger = logger or logging.getLogger(__name__)
        self.packer = ContextPacker(
            max_size=self.settings.max_context_size,
            file_count_warning=self.settings.file_count_warning,
            logger=self.logger,
        )

    async def pack(self, root: str, dockerfile: str = "") -> PackResult:
        """
        Package a build context without blocking the event loop

        Cancelling the awaiting task stops the packer at its next write.

        Args:
            root: Build context directory
            dockerfile: Dockerfile path relative to root

        Returns:
            PackResult
        """
        cancel_event = threading.Event()
        future = asyncio.get_event_loop().run_in_executor(
            None, self.packer.package, root, dockerfile, cancel_event
        )
        try:
            return await future
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    async def get_remote_build_context(self,
                                       name: str,
                                       build: BuildConfig,
                                       force: Optional[bool] = None) -> BuildContextResult:
        """
        Package and upload the build context of one service

        Args:
            name: Service name
            build: Build section of the service
            force: Upload without a digest (default: settings.force)

        Returns:
            BuildContextResult; on dry run the URL is the local context root

        Raises:
            PackError: If packaging fails
            UploadError: If the upload fails
        """
        root = os.path.abspath(build.context)

        self.logger.info(f" * Compressing build context for {name} at {root}")
        packed = await self.pack(root, build.dockerfile)
        return await self.publish(name, root, packed, force)

    async def publish(self,
                      name: str,
                      root: str,
                      packed: PackResult,
                      force: Optional[bool] = None) -> BuildContextResult:
        """
        Upload an already packaged build context

        Args:
            name: Service name
            root: Build context directory the archive was made from
            packed: Packaging result
            force: Upload without a digest (default: settings.force). The
                remote then has no content address to deduplicate on, so a
                forced upload always produces a fresh context and rebuild.

        Returns:
            BuildContextResult; on dry run the URL is the local context root

        Raises:
            UploadError: If the upload fails or no uploader is configured
        """
        force = self.settings.force if force is None else force

        digest = ""
        if not force:
            digest = packed.digest
            self.logger.debug(f" - Digest: {digest}")

        if self.settings.dry_run:
            return BuildContextResult(
                service=name,
                url=root,
                digest=digest or None,
                size=packed.size,
                uploaded=False,
            )

        if self.uploader is None:
            raise UploadError("no upload destination configured")

        self.logger.info(f" * Uploading build context for {name} ({format_size(packed.size)})")
        url = await self.uploader.upload(packed.archive, digest)
        return BuildContextResult(service=name, url=url, digest=digest or None, size=packed.size)

    async def prepare_build_contexts(self,
                                     project: Project,
                                     force: Optional[bool] = None) -> Dict[str, BuildContextResult]:
        """
        Package and upload every build context of a project concurrently

        The first failure cancels the remaining services and is re-raised
        once they have stopped.

        Args:
            project: Loaded project
            force: Upload without digests (default: settings.force)

        Returns:
            Service name -> BuildContextResult
        """
        tasks = [
            asyncio.ensure_future(self.get_remote_build_context(service.name, service.build, force))
            for service in project.services_with_build()
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return {result.service: result for result in results}
