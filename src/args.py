"""Argument parsing functionality for surefire-deps."""

import argparse


def _add_common(parser):
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Write results to this file instead of stdout",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format (json or text, default: text)",
                        action="store",
                        type=str.lower,
                        choices=['json', 'text'],
                        default='text')


def _add_repository_options(parser):
    parser.add_argument("--offline",
                        dest="OFFLINE",
                        help="Resolve from the local repository only",
                        action="store_true",
                        default=None)
    parser.add_argument("--repository",
                        dest="REPOSITORIES",
                        help="Remote repository URL (repeatable; replaces configured remotes)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--local-repository",
                        dest="LOCAL_REPOSITORY",
                        help="Local repository directory (default: ~/.m2/repository)",
                        action="store",
                        type=str)


def build_parser():
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="surefire-deps",
        description="Assemble test provider classpaths and discover tests in dependency jars",
        add_help=True,
    )
    sub = parser.add_subparsers(dest="COMMAND", required=True)

    classpath = sub.add_parser("classpath", help="Print the ordered classpath of a test provider")
    provider_group = classpath.add_mutually_exclusive_group(required=True)
    provider_group.add_argument("-p", "--provider",
                                dest="PROVIDER",
                                help="Provider artifact id, e.g. surefire-junit4",
                                action="store",
                                type=str)
    provider_group.add_argument("-t", "--test-dependency",
                                dest="TEST_DEPENDENCIES",
                                help="Project test dependency (g:a[:type[:classifier]]:v) used to pick the provider",
                                action="append",
                                type=str)
    classpath.add_argument("-v", "--provider-version",
                           dest="PROVIDER_VERSION",
                           help="Provider version (default from config)",
                           action="store",
                           type=str)
    classpath.add_argument("--parallel",
                           dest="PARALLEL",
                           help="Prefer the provider supporting parallel JUnit execution",
                           action="store_true")
    classpath.add_argument("--as-map",
                           dest="AS_MAP",
                           help="Key the output by groupId:artifactId",
                           action="store_true")
    _add_repository_options(classpath)
    _add_common(classpath)

    scan = sub.add_parser("scan", help="List test classes contained in dependency jars")
    scan.add_argument("JARS",
                      help="Jar files to scan",
                      nargs="*")
    scan.add_argument("-a", "--artifact",
                      dest="ARTIFACTS",
                      help="Dependency coordinates (g:a[:type[:classifier]]:v) to resolve and scan",
                      action="append",
                      type=str,
                      default=[])
    scan.add_argument("-d", "--dependencies-to-scan",
                      dest="DEPENDENCIES_TO_SCAN",
                      help="Pattern groupId:artifactId[:version[:type[:classifier]]] selecting resolved artifacts",
                      action="append",
                      type=str,
                      default=[])
    scan.add_argument("-i", "--include",
                      dest="INCLUDES",
                      help="Test include pattern (repeatable)",
                      action="append",
                      type=str,
                      default=[])
    scan.add_argument("-e", "--exclude",
                      dest="EXCLUDES",
                      help="Test exclude pattern (repeatable)",
                      action="append",
                      type=str)
    _add_repository_options(scan)
    _add_common(scan)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
