"""Config command implementation"""

import asyncio

import click
import yaml

from ..utils.output import console, print_success, print_warnings
from ...services.deploy_service import DeployService


@click.command()
@click.option(
    '--file', '-f', 'file_path',
    help='Compose file or glob (default: compose.yaml in the current directory)'
)
@click.option(
    '--project-name', '-p',
    help='Project name; overrides the name in the compose file'
)
@click.option(
    '--tenant', '-t',
    help='Tenant; used as project name when the compose file has none'
)
@click.pass_obj
def config(obj, file_path, project_name, tenant):
    """Load, validate and convert a compose file

    Prints the deployment request as YAML without packaging or uploading
    any build context.

    Examples:
        compose-deploy config
        compose-deploy config -f ./app/compose.yaml -p myapp
    """
    settings = obj.settings.update(project_name=project_name, tenant=tenant)
    service = DeployService(settings)

    plan = asyncio.run(service.prepare_deployment(file_path, upload=False))

    console.print(yaml.safe_dump(plan.request.to_dict(), sort_keys=False), end="", markup=False)
    print_warnings(plan.validation.warnings)
    print_success(f"Project {plan.request.project} is valid")
