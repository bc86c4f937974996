# compose_deploy/services/deploy_service.py
"""Deployment preparation: load, validate, package and convert"""

import logging
from typing import Optional, Tuple

from .build_context_service import BuildContextService
from ..core.compose_loader import ComposeLoader, find_compose_file
from ..core.converter import convert_project
from ..core.validation_engine import ProjectValidator
from ..models.compose import Project
from ..models.config import Settings
from ..models.result import DeploymentPlan, ValidationResult
from ..storage.base import UploadUrlProvider
from ..storage.http_upload import HttpUploader


class DeployService:
    """Prepare the deployment request for a compose project"""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 url_provider: Optional[UploadUrlProvider] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize deploy service

        Args:
            settings: Runtime settings (default: Settings())
            url_provider: Upload destination source; required to upload
            logger: Diagnostics sink (default: module logger)
        """
        self.settings = settings or Settings()
        self.logger = logger or logging.getLogger(__name__)

        uploader = None
        if url_provider is not None:
            uploader = HttpUploader(url_provider, timeout=self.settings.upload_timeout, logger=self.logger)
        self.build_contexts = BuildContextService(self.settings, uploader, self.logger)

    def load_project(self, file_path: Optional[str] = None) -> Tuple[Project, ValidationResult]:
        """
        Load and validate a compose project

        The project name comes from settings.project_name when set,
        otherwise from the manifest with the tenant as fallback.

        Args:
            file_path: Compose file or glob (default: discover in cwd)

        Returns:
            Tuple of (project, validation result)

        Raises:
            ComposeError: If the manifest cannot be loaded
        """
        file_path = file_path or find_compose_file()
        loader = ComposeLoader(self.logger)

        if self.settings.project_name:
            project = loader.load(file_path, self.settings.project_name, override=True)
        else:
            project = loader.load(file_path, self.settings.tenant, override=False)

        result = loader.result
        result.merge(ProjectValidator(self.logger).validate_project(project))
        return project, result

    async def prepare_deployment(self,
                                 file_path: Optional[str] = None,
                                 upload: bool = True) -> DeploymentPlan:
        """
        Produce the deployment request for a compose file

        Args:
            file_path: Compose file or glob (default: discover in cwd)
            upload: Package and upload build contexts

        Returns:
            DeploymentPlan

        Raises:
            ComposeError: If the manifest cannot be loaded
            ValidationError: If the project violates platform constraints
            PackError: If a build context cannot be packaged
            UploadError: If a build context cannot be uploaded
        """
        project, result = self.load_project(file_path)
        result.raise_for_errors()

        contexts = {}
        if upload:
            contexts = await self.build_contexts.prepare_build_contexts(project)

        request = convert_project(
            project,
            result,
            {name: ctx.url for name, ctx in contexts.items()},
            self.logger,
        )

        if result.had_warnings:
            self.logger.info(f" ! {len(result.warnings)} warning(s) while preparing {project.name}")
        return DeploymentPlan(request=request, validation=result, build_contexts=contexts)
