"""Per-instance working directories copied from the template."""

import logging
import shutil
import tempfile
from pathlib import Path

from pgtest.config import Settings
from pgtest.endpoint import allocate_endpoint
from pgtest.errors import ProvisionError
from pgtest.pgconf import append_overrides
from pgtest.types import EndpointDescriptor, TemplateDirectory

logger = logging.getLogger(__name__)


def provision_instance(
    template: TemplateDirectory, settings: Settings
) -> tuple[Path, EndpointDescriptor]:
    """Copy the template into a fresh temporary directory and point its socket there.

    The template is only read. If anything fails the new directory is removed
    before the error propagates.
    """
    try:
        workdir = Path(tempfile.mkdtemp(prefix="pgtest", dir=settings.temp_root))
    except OSError as e:
        raise ProvisionError(f"cannot create working directory: {e}", phase="copy") from e

    try:
        shutil.copytree(template.path, workdir, symlinks=True, dirs_exist_ok=True)
        endpoint = allocate_endpoint(workdir, settings)
        append_overrides(workdir, {"unix_socket_directories": str(endpoint.socket_dir)})
    except ProvisionError:
        shutil.rmtree(workdir, ignore_errors=True)
        raise
    except OSError as e:
        shutil.rmtree(workdir, ignore_errors=True)
        raise ProvisionError(
            f"cannot copy template {template.path} to {workdir}: {e}", phase="copy"
        ) from e

    logger.debug("Provisioned %s from template %s", workdir, template.path)
    return workdir, endpoint
