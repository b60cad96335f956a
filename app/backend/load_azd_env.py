import json
import logging
import subprocess

from dotenv import load_dotenv

logger = logging.getLogger("scripts")


def load_azd_env() -> None:
    """
    Loads the variables of the default Azure Developer CLI (azd) environment
    into the current process, overriding existing values.

    Raises:
        Exception: If 'azd env list' fails or no default environment is set
    """
    result = subprocess.run("azd env list -o json", shell=True, capture_output=True, text=True)
    if result.returncode != 0:
        logger.error("Failed to execute 'azd env list' command")
        raise Exception("Error loading azd env")

    env_json = json.loads(result.stdout)
    env_file_path = None
    for entry in env_json:
        if entry["IsDefault"]:
            env_file_path = entry["DotEnvPath"]
            break

    if not env_file_path:
        logger.error("No default azd environment found")
        raise Exception("No default azd env file found")

    logger.info("Loading azd env from %s", env_file_path)
    load_dotenv(env_file_path, override=True)
