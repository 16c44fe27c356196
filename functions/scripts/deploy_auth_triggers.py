# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""
Deploys on_user_create and on_user_delete as first generation functions.

Usage:
    python scripts/deploy_auth_triggers.py --project PROJECT_ID
        [--region us-central1] [--runtime python312]
        [--env-vars-file .env.yaml] [--dry-run]

`firebase deploy` only deploys the decorated second generation functions of
main.py. Auth lifecycle events (user.create, user.delete) are only delivered
to first generation functions, so these two are deployed with gcloud from the
same source directory.
"""

from __future__ import annotations

import argparse
import logging
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]

logger = logging.getLogger(__name__)

AUTH_TRIGGERS = {
    "on_user_create": "providers/firebase.auth/eventTypes/user.create",
    "on_user_delete": "providers/firebase.auth/eventTypes/user.delete",
}


def build_deploy_command(
    function_name: str,
    project: str,
    region: str = "us-central1",
    runtime: str = "python312",
    source: Path = ROOT,
    env_vars_file: Optional[str] = None,
) -> List[str]:
    command = [
        "gcloud",
        "functions",
        "deploy",
        function_name,
        "--no-gen2",
        f"--project={project}",
        f"--region={region}",
        f"--runtime={runtime}",
        f"--source={source}",
        f"--entry-point={function_name}",
        f"--trigger-event={AUTH_TRIGGERS[function_name]}",
        f"--trigger-resource={project}",
    ]
    if env_vars_file:
        command.append(f"--env-vars-file={env_vars_file}")
    return command


def build_deploy_commands(project: str, **kwargs) -> List[List[str]]:
    return [build_deploy_command(name, project, **kwargs) for name in AUTH_TRIGGERS]


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0].strip())
    parser.add_argument("--project", required=True, help="Firebase project ID.")
    parser.add_argument("--region", default="us-central1")
    parser.add_argument("--runtime", default="python312")
    parser.add_argument(
        "--env-vars-file",
        default=None,
        help="YAML file with ADMIN_UID, ALLOW_SIGN_UP and the other settings.",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Print the commands only."
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    commands = build_deploy_commands(
        args.project,
        region=args.region,
        runtime=args.runtime,
        env_vars_file=args.env_vars_file,
    )
    for command in commands:
        logger.info("%s", shlex.join(command))
        if args.dry_run:
            continue
        try:
            subprocess.run(command, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("Deploying %s failed: %s", command[3], e)
            sys.exit(1)


if __name__ == "__main__":
    main()
