import argparse
import logging
import sys
from logging.config import dictConfig

from cheroot.wsgi import Server

import meshcli.constants as const
from meshcli import __version__
from meshcli.api_client import new_api_client
from meshcli.exceptions import BaseMeshException, UsageError
from meshcli.flask_application import create_app
from meshcli.get import dispatch
from meshcli.kube_api import new_k8s_api
from meshcli.logging import MeshLoggingWrapper, get_log_level, logging_config
from meshcli.shell import Shell, UnixShell


def add_control_plane_networking_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--api-addr",
        default="",
        help="override the Kubernetes API server address, e.g. localhost:8001",
    )
    parser.add_argument(
        "--kubeconfig",
        default="",
        help="path to the Kubernetes config file, defaults to $KUBECONFIG or "
        "~/.kube/config",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="meshcli",
        description="Command line client for the service mesh control plane.",
    )
    parser.add_argument(
        "--control-plane-namespace",
        default=const.DEFAULT_CONTROL_PLANE_NAMESPACE,
        help="namespace the control plane is installed in",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    get_parser = subparsers.add_parser(
        "get",
        help="display one or many mesh resources",
        description=(
            "Display one or many mesh resources.\n\n"
            "Valid resource types include:\n"
            " * pods (aka pod, po)"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    # arity is checked by the command itself to report it as a usage error
    get_parser.add_argument("resources", nargs="*", metavar="RESOURCE")
    add_control_plane_networking_args(get_parser)
    get_parser.set_defaults(func=run_get, subparser=get_parser)

    version_parser = subparsers.add_parser(
        "version", help="print the client and server version information"
    )
    version_parser.add_argument(
        "--client", action="store_true", help="print the client version only"
    )
    add_control_plane_networking_args(version_parser)
    version_parser.set_defaults(func=run_version, subparser=version_parser)

    dashboard_parser = subparsers.add_parser(
        "dashboard", help="serve the web dashboard"
    )
    dashboard_parser.add_argument(
        "--address",
        default=const.DEFAULT_DASHBOARD_ADDRESS,
        help="HOST:PORT the dashboard listens on",
    )
    add_control_plane_networking_args(dashboard_parser)
    dashboard_parser.set_defaults(func=run_dashboard, subparser=dashboard_parser)

    return parser


def api_client_for(args: argparse.Namespace, shell: Shell):
    kube_api = new_k8s_api(shell, args.kubeconfig, args.api_addr)
    return new_api_client(kube_api, args.control_plane_namespace)


def run_get(args: argparse.Namespace, shell: Shell):
    pod_names = dispatch(args.resources, lambda: api_client_for(args, shell))
    for pod_name in pod_names:
        print(pod_name)
    return 0


def run_version(args: argparse.Namespace, shell: Shell):
    print(f"Client version: {__version__}")
    if args.client:
        return 0

    server_version = api_client_for(args, shell).version()
    print(f"Server version: {server_version.get('releaseVersion', 'unknown')}")
    return 0


def run_dashboard(args: argparse.Namespace, shell: Shell):
    host, _, port = args.address.rpartition(":")
    if not host or not port.isdigit():
        msg = "invalid address {address}, expected HOST:PORT"
        raise UsageError(message=msg, address=args.address)

    api_client = api_client_for(args, shell)
    log_level = get_log_level(shell.getenv(const.LOG_LEVEL))
    app = MeshLoggingWrapper(create_app(lambda: api_client), log_level)

    server = Server((host, int(port)), app)
    logging.info("serving dashboard on %s", args.address)
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
    return 0


def main(argv: list = None, shell: Shell = None) -> int:
    """
    Run the command line tool and return its exit code: 0 on success, 2 for
    usage errors and 1 for every other failure.
    """
    shell = shell or UnixShell()
    dictConfig(logging_config(get_log_level(shell.getenv(const.LOG_LEVEL))))

    args = build_parser().parse_args(argv)
    try:
        return args.func(args, shell)
    except UsageError as err:
        args.subparser.print_usage(sys.stderr)
        print(f"Error: {err.user_msg}", file=sys.stderr)
        return 2
    except BaseMeshException as err:
        logging.debug(str(err))
        print(f"Error: {err.user_msg}", file=sys.stderr)
        return 1
