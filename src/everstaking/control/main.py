import argparse
import asyncio
import json
import logging
import os
from logging.handlers import RotatingFileHandler

from everstaking.control.manager import StakingManager
from everstaking.control.routines.periodic import StakingRoutine
from everstaking.control.utils.serialization import defaults_deep


def load_settings(settings_path, settings_env) -> dict:
    config = {}
    if settings_path:
        with open(settings_path) as f:
            config = json.load(f)
    if os.environ.get(settings_env):
        # env settings take precedence over file ones
        config = defaults_deep(json.loads(os.environ.get(settings_env)), config)
    return config


async def run(manager: StakingManager):
    settings = manager.settings
    routine = StakingRoutine(manager, settings.PERIODIC_JOBS,
                             max_factor=settings.MAX_FACTOR,
                             retry_attempts=settings.RETRY_ATTEMPTS)
    log = logging.getLogger("")
    try:
        if settings.PERIODIC_JOBS.ENABLED:
            log.info("Starting routines...")
            await routine.run_forever()
        else:
            log.info("Periodic jobs are disabled")
            while True:
                log.info("Still alive")
                await asyncio.sleep(60)
    finally:
        await manager.close()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('--settings', dest='settings', default=None,
                        help='Path to JSON file with staking settings')
    parser.add_argument('--settings_env', default="STAKING_MANAGER_SETTINGS",
                        help='Env variable name containing JSON settings')
    parser.add_argument('--log_path', dest='log_path',
                        default='/var/everstaking/log', help='Path to log folder')
    parser.add_argument("--secret_manager_provider", default=None,
                        help="Python module path to use to import Secret Manager provider, "
                             "ex: everstaking.control.secrets.envprovider.core")
    parser.add_argument("--secret_manager_connection_env", default="STAKING_MANAGER_SECRET_MANAGER_CONNECTION_STRING",
                        help="Env variable containing secret manager connection string")
    parser.add_argument("--keys_dir", default='/var/everstaking/configs/keys',
                        help="Path to folder with keys used by secret manager")

    args = parser.parse_args()
    configure_logging(args.log_path)
    log = logging.getLogger("")

    config = load_settings(args.settings, args.settings_env)
    secret_manager = None
    if args.secret_manager_provider:
        log.info("Initializing SecretManager from {}".format(args.secret_manager_provider))
        secret_manager_mod = __import__(args.secret_manager_provider, fromlist=['SecretManager'])
        secret_manager = secret_manager_mod.SecretManager(
            (os.environ.get(args.secret_manager_connection_env) or "{}").strip("'"), args.keys_dir)
    manager = StakingManager.create(config, secret_manager)
    log.info("Staking manager initialized, funding: {}".format(manager.settings.FUNDING.TYPE))
    asyncio.run(run(manager))


def configure_logging(log_dir):
    loggers = {
        "": {
            "file": "everstaking.log"
        },
        "elections | funding | datastore": {
            "file": "elections.log"
        },
        "webhook": {
            "file": "webhook.log"
        },
        # external tools
        "ledger | everos | rconsole | tonoscli | toncommon": {
            "file": "everutils.log"
        }
    }
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)
    default_formatter = logging.Formatter('%(asctime)s::%(name)s::%(levelname)s::%(message)s')
    for logger_names, logger_settings in loggers.items():
        for logger_name in logger_names.split("|"):
            logger_name = logger_name.strip()
            logger = logging.getLogger(logger_name)
            logger.propagate = logger_settings.get('propagate', False)
            logger.setLevel(logging.DEBUG)
            if not logger.propagate:
                # if not propagate, then attach stdout. otherwise 'base' will provide this handler
                fh_stdout = logging.StreamHandler()
                fh_stdout.setLevel(logging.DEBUG)
                fh_stdout.setFormatter(default_formatter)
                logger.addHandler(fh_stdout)
            if "file" in logger_settings:
                log_file = os.path.join(log_dir, logger_settings["file"])
                fh = RotatingFileHandler(log_file, maxBytes=50 * 1024 * 1024,
                                         backupCount=2)
                fh.setFormatter(default_formatter)
                fh.setLevel(logging.DEBUG)
                logger.addHandler(fh)
            logger.info("Logger initialized")


if __name__ == "__main__":
    try:
        main()
    except Exception:
        logging.getLogger("").exception("Failed to start staking manager")
        raise
