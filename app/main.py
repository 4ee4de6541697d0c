import argparse
import asyncio
import json
import sys
from typing import List, Optional

from core.aws_client import get_glacier_client, get_sns_client, get_sqs_client, validate_aws_credentials
from core.config import settings
from core.exceptions import ConfigurationError, GlacierCliError
from core.logger import logger
from integrations.glacier_client import GlacierClient
from integrations.sns_client import TopicClient
from integrations.sqs_client import QueueClient
from services.archive_service import ArchiveService
from services.completion_poller import CompletionPoller
from services.inventory_coordinator import InventoryRetrievalCoordinator
from services.provisioner import NotificationChannelProvisioner

USAGE = (
    "glacier upload vault_name file1 file2 ... | "
    "download vault_name archiveId output_file | "
    "delete vault_name archiveId | "
    "inventory vault_name | "
    "create-vault vault_name | delete-vault vault_name | info vault_name | list"
)

# command -> (exact argument count after the command, or None for "at least one")
COMMANDS = {
    "upload": None,
    "download": 3,
    "delete": 2,
    "inventory": 1,
    "create-vault": 1,
    "delete-vault": 1,
    "info": 1,
    "list": 0,
}

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="glacier", usage=USAGE, description="Command line client for Amazon Glacier")
    parser.add_argument("command", help="One of: " + ", ".join(COMMANDS))
    parser.add_argument("arguments", nargs="*", help="Command arguments")
    parser.add_argument("--region", default=None,
                        help=f"AWS region of the vault. Defaults to '{settings.AWS_REGION}'")
    parser.add_argument("--topic", default=None,
                        help=f"SNS topic to use for job notifications. Defaults to '{settings.GLACIER_DEFAULT_TOPIC}'")
    parser.add_argument("--queue", default=None,
                        help=f"SQS queue to use for job notifications. Defaults to '{settings.GLACIER_DEFAULT_QUEUE}'")
    parser.add_argument("--file", "--output", dest="file", default=None,
                        help=f"File to save the inventory to. Defaults to '{settings.GLACIER_DEFAULT_INVENTORY_FILE}'")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Give up waiting for a retrieval job after this many seconds")
    parser.add_argument("--exact-names", action="store_true",
                        help="Use --topic/--queue names verbatim instead of adding a per-run suffix. "
                             "Never run two retrievals at once with the same names.")
    return parser


def parse_command(parser: argparse.ArgumentParser, argv: List[str]) -> argparse.Namespace:
    if len(argv) < 1:
        raise ConfigurationError("Must provide a command.")

    args = parser.parse_args(argv)
    if args.command not in COMMANDS:
        raise ConfigurationError(f"Invalid command given: {args.command}")

    expected = COMMANDS[args.command]
    if expected is None and len(args.arguments) < 2:
        raise ConfigurationError(f"The {args.command} command requires a vault name and at least one file.")
    if expected is not None and len(args.arguments) != expected:
        raise ConfigurationError(f"The {args.command} command requires exactly {expected} parameter(s).")
    return args


def build_service(args: argparse.Namespace) -> ArchiveService:
    if not validate_aws_credentials():
        raise ConfigurationError("Missing AWS credentials.")

    region = args.region or settings.AWS_REGION
    glacier = GlacierClient(get_glacier_client(region))
    provisioner = NotificationChannelProvisioner(
        queue_client=QueueClient(get_sqs_client(region)),
        topic_client=TopicClient(get_sns_client(region)),
    )
    coordinator = InventoryRetrievalCoordinator(
        glacier=glacier,
        provisioner=provisioner,
        poller=CompletionPoller(provisioner.queue_client),
        unique_names=False if args.exact_names else None,
    )
    return ArchiveService(glacier=glacier, coordinator=coordinator)


def run_command(service: ArchiveService, args: argparse.Namespace) -> int:
    command, params = args.command, args.arguments
    job_options = {"topic_name": args.topic, "queue_name": args.queue, "timeout": args.timeout}

    if command == "upload":
        uploaded, failed = service.upload_many(params[0], params[1:])
        for path, archive_id in uploaded.items():
            print(f"{path}\t{archive_id}")
        return EXIT_FAILURE if failed else EXIT_OK

    if command == "download":
        asyncio.run(service.download(params[0], params[1], params[2], **job_options))
    elif command == "delete":
        service.delete(params[0], params[1])
    elif command == "inventory":
        path = asyncio.run(service.coordinator.inventory(params[0], dest_path=args.file, **job_options))
        print(f"Retrieved inventory to {path}")
    elif command == "create-vault":
        print(service.create_vault(params[0]))
    elif command == "delete-vault":
        service.delete_vault(params[0])
    elif command == "info":
        print(json.dumps(service.describe_vault(params[0]), indent=2, default=str))
    elif command == "list":
        print(json.dumps(service.list_vaults(), indent=2, default=str))
    return EXIT_OK


def usage_error(parser: argparse.ArgumentParser, e: ConfigurationError) -> int:
    print(f"error: {e.message}")
    print()
    parser.print_help()
    return EXIT_USAGE


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv

    try:
        args = parse_command(parser, argv)
        service = build_service(args)
    except ConfigurationError as e:
        return usage_error(parser, e)

    try:
        return run_command(service, args)
    except KeyboardInterrupt:
        logger.warning("Interrupted; notification resources were released")
        return EXIT_INTERRUPTED
    except ConfigurationError as e:
        return usage_error(parser, e)
    except GlacierCliError as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_FAILURE


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
