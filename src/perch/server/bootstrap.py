"""Server bootstrap: from a ServeConfig to a running server.

Steps, in order::

    INIT -> RESOLVING_PORT -> (TLS_PROVISIONING) -> LISTENING -> RUNNING

``ABORTED`` is reachable from any step. Every outside effect (the port
prompt, certificate provisioning, lifecycle events, the browser, the
ASGI server itself) is an injected collaborator, so each step can be
driven in tests without a terminal or a real server.
"""

from __future__ import annotations

import dataclasses
import logging
import socket
import webbrowser
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, TypeAlias

from perch.app import Site
from perch.config import ServeConfig, SiteInfo, load_site_info
from perch.errors import ConfigurationError, PortDeclined, TLSProvisioningError
from perch.lifecycle import SERVE_START, Lifecycle, LoggingLifecycle, stop_callback
from perch.reporting import Reporter, default_reporter
from perch.server.banner import print_instructions
from perch.server.ports import (
    WILDCARD_HOSTS,
    PortPolicy,
    create_listener,
    interactive_port_policy,
    resolve_port,
)
from perch.server.tls import TLSMaterial, get_ssl_cert
from perch.server.urls import PreparedUrls, prepare_urls

if TYPE_CHECKING:
    from perch.server.tls import TLSProvisioner

logger = logging.getLogger("perch.server")

Opener: TypeAlias = Callable[[str], bool]
Runner: TypeAlias = Callable[[Site, ServeConfig, TLSMaterial | None, socket.socket], None]

LONE_CERT_MESSAGE = "for custom ssl --https, --cert-file, and --key-file must be used together"
NO_CERT_MESSAGE = "error getting ssl certs"
NO_BROWSER_MESSAGE = "Browser not opened because no browser was found"


class BootState(Enum):
    INIT = "init"
    RESOLVING_PORT = "resolving_port"
    TLS_PROVISIONING = "tls_provisioning"
    LISTENING = "listening"
    RUNNING = "running"
    ABORTED = "aborted"


class Bootstrap:
    """Observable result of one ``serve()`` call.

    ``state`` is the last step reached. After an abort, ``error`` holds
    the configuration error that caused it, or None for a declined port.
    """

    __slots__ = ("config", "error", "site", "site_info", "state", "tls", "urls")

    def __init__(self, config: ServeConfig) -> None:
        self.config = config
        self.state = BootState.INIT
        self.site: Site | None = None
        self.site_info: SiteInfo | None = None
        self.tls: TLSMaterial | None = None
        self.urls: PreparedUrls | None = None
        self.error: ConfigurationError | None = None

    @property
    def aborted(self) -> bool:
        return self.state is BootState.ABORTED

    @property
    def exit_code(self) -> int:
        """Process exit status: 1 for a configuration error, else 0."""
        return 1 if self.error is not None else 0

    def _abort(self, error: ConfigurationError | None = None) -> Bootstrap:
        self.state = BootState.ABORTED
        self.error = error
        return self


def run_uvicorn(
    app: Site,
    config: ServeConfig,
    tls: TLSMaterial | None,
    sock: socket.socket,
) -> None:
    """Serve *app* on the already-bound *sock* until a termination signal."""
    import uvicorn

    ssl_options: dict[str, str] = {}
    if tls is not None:
        ssl_options["ssl_certfile"] = str(tls.cert_file)
        ssl_options["ssl_keyfile"] = str(tls.key_file)

    server_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        lifespan="on",
        log_level=logging.getLogger("perch").getEffectiveLevel(),
        **ssl_options,
    )
    uvicorn.Server(server_config).run(sockets=[sock])


def _ssl_host(host: str) -> str:
    return "localhost" if host in WILDCARD_HOSTS else host


def _provision_tls(
    config: ServeConfig,
    provisioner: TLSProvisioner,
    reporter: Reporter,
) -> TLSMaterial:
    if bool(config.cert_file) != bool(config.key_file):
        raise ConfigurationError(LONE_CERT_MESSAGE)
    material = provisioner(
        name=_ssl_host(config.host),
        directory=config.site_dir,
        reporter=reporter,
        cert_file=config.cert_file,
        key_file=config.key_file,
        ca_file=config.ca_file,
    )
    if material is None:
        raise TLSProvisioningError(NO_CERT_MESSAGE)
    return material


def _open_browser(url: str, opener: Opener, reporter: Reporter) -> None:
    reporter.info("Opening browser...")
    try:
        opened = opener(url)
    except (webbrowser.Error, OSError):
        logger.debug("Browser opener failed for %s", url, exc_info=True)
        opened = False
    if not opened:
        reporter.warning(NO_BROWSER_MESSAGE)


def serve(
    config: ServeConfig,
    *,
    reporter: Reporter | None = None,
    port_policy: PortPolicy | None = None,
    tls_provisioner: TLSProvisioner = get_ssl_cert,
    lifecycle: Lifecycle | None = None,
    opener: Opener = webbrowser.open,
    runner: Runner = run_uvicorn,
    site_info: SiteInfo | None = None,
) -> Bootstrap:
    """Resolve the port, provision TLS, bind, announce, and run.

    Blocks in the runner until the server stops. Configuration errors are
    reported through *reporter* and leave the returned bootstrap
    ``ABORTED`` with ``error`` set; a declined port leaves it ``ABORTED``
    with nothing reported. Anything else propagates.
    """
    reporter = reporter or default_reporter()
    lifecycle = lifecycle or LoggingLifecycle()
    boot = Bootstrap(config)

    # -- INIT --
    site_info = site_info or load_site_info(config.site_dir, reporter)
    boot.site_info = site_info
    site = Site(
        config.site_dir,
        path_prefix=site_info.mount_prefix(config.prefix_paths),
        reporter=reporter,
    )
    # Shared with the lifespan shutdown; SERVE_STOP goes out once on any exit.
    on_stop = stop_callback(lifecycle)
    site.on_shutdown(on_stop)
    boot.site = site
    lifecycle.track(SERVE_START)

    try:
        # -- RESOLVING_PORT --
        boot.state = BootState.RESOLVING_PORT
        policy = port_policy or interactive_port_policy(config.host)
        try:
            port = resolve_port(config.host, config.port, policy)
        except PortDeclined as exc:
            logger.debug("Port %d declined; not starting", exc.port)
            return boot._abort()
        if port != config.port:
            logger.debug("Port %d in use; using %d", config.port, port)
            config = dataclasses.replace(config, port=port)
            boot.config = config

        # -- TLS_PROVISIONING --
        if config.https:
            boot.state = BootState.TLS_PROVISIONING
            try:
                boot.tls = _provision_tls(config, tls_provisioner, reporter)
            except ConfigurationError as exc:
                reporter.error(str(exc))
                return boot._abort(exc)

        # -- LISTENING --
        boot.state = BootState.LISTENING
        sock = create_listener(config.host, config.port)
        try:
            boot.state = BootState.RUNNING
            boot.urls = prepare_urls(config.protocol, config.host, config.port)
            print_instructions(site_info.name, boot.urls)
            if config.open:
                _open_browser(boot.urls.local_url_for_browser, opener, reporter)

            # -- RUNNING --
            runner(site, config, boot.tls, sock)
        finally:
            sock.close()
        return boot
    finally:
        on_stop()
