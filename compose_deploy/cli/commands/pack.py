"""Pack command implementation"""

import asyncio
import os
from pathlib import Path

import click

from ..utils.output import format_pack_result, print_success
from ...services.build_context_service import BuildContextService
from ...storage.base import StaticUploadUrlProvider
from ...storage.http_upload import HttpUploader


@click.command()
@click.argument('context', required=False, default='.')
@click.option(
    '--dockerfile', '-F',
    default='',
    help='Dockerfile path relative to the context (default: Dockerfile)'
)
@click.option(
    '--output', '-o',
    type=click.Path(path_type=Path),
    help='Write the archive to this file'
)
@click.option(
    '--upload-url',
    help='Upload the archive to <URL>/<digest>'
)
@click.option(
    '--force',
    is_flag=True,
    default=None,
    help='Upload without a digest'
)
@click.option(
    '--dry-run',
    is_flag=True,
    default=None,
    help='Package only; never upload'
)
@click.pass_obj
def pack(obj, context, dockerfile, output, upload_url, force, dry_run):
    """Package a build context the way it is sent to the builder

    Examples:
        compose-deploy pack ./app
        compose-deploy pack ./app -F docker/Dockerfile.prod -o context.tar.gz
        compose-deploy pack ./app --upload-url https://uploads.example.com/contexts
    """
    settings = obj.settings.update(force=force, dry_run=dry_run)
    uploader = None
    if upload_url:
        uploader = HttpUploader(StaticUploadUrlProvider(upload_url), timeout=settings.upload_timeout)
    service = BuildContextService(settings, uploader)

    async def run():
        root = os.path.abspath(context)
        packed = await service.pack(root, dockerfile)
        result = None
        if uploader is not None:
            result = await service.publish(os.path.basename(root), root, packed)
        return packed, result

    packed, result = asyncio.run(run())

    if output:
        output.write_bytes(packed.archive)
        print_success(f"Archive written to {output}")

    format_pack_result(packed, result)
