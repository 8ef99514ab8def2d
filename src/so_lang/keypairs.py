"""
Program Identity Resolution
===========================

Solana programs are addressed by the base58 public key of a keypair. The
compiler asks an identity resolver for the id of a domain unit whose
source does not declare one; generation itself never shells out.

Resolvers
---------
- KeygenIdentityResolver: caches one keypair per program under a
  directory (keypairs/<name>-keypair.json by default), creating it with
  `solana-keygen new` on first use and reading the id back with
  `solana-keygen pubkey`.
- StaticIdentityResolver: returns fixed ids, for tests and for callers
  that manage keys themselves.

Failures raise ProgramIdentityError. The compiler catches it and emits
the unit without a declared id.
"""

from pathlib import Path
from typing import Optional, Union
import logging
import subprocess

from so_lang.errors import ProgramIdentityError

logger = logging.getLogger(__name__)

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

# Length range of a base58-encoded 32-byte public key
MIN_PROGRAM_ID_LENGTH = 32
MAX_PROGRAM_ID_LENGTH = 44

DEFAULT_KEYPAIR_DIR = "keypairs"
DEFAULT_KEYGEN_COMMAND = "solana-keygen"
KEYGEN_TIMEOUT = 60


def validate_program_id(program_id: str) -> bool:
    """
    Check that a program id looks like a base58 public key.

    A bad shape is reported as a warning, never as an error.

    Returns:
        True if the length and alphabet are valid
    """
    if not MIN_PROGRAM_ID_LENGTH <= len(program_id) <= MAX_PROGRAM_ID_LENGTH:
        logger.warning(
            f"Program id '{program_id}' has length {len(program_id)}, expected "
            f"{MIN_PROGRAM_ID_LENGTH}-{MAX_PROGRAM_ID_LENGTH} characters"
        )
        return False

    invalid = sorted(set(program_id) - set(BASE58_ALPHABET))
    if invalid:
        logger.warning(
            f"Program id '{program_id}' contains non-base58 characters: "
            f"{''.join(invalid)}"
        )
        return False

    logger.debug(f"Program id '{program_id}' validation passed")
    return True


class IdentityResolver:
    """Interface: map a program name to its base58 id."""

    def resolve(self, program_name: str) -> str:
        """
        Return the program id for a program name.

        Raises:
            ProgramIdentityError: If no id can be produced
        """
        raise NotImplementedError

    def keypair_path(self, program_name: str) -> Optional[Path]:
        """Path of the keypair backing the id, if the resolver uses one."""
        return None


class StaticIdentityResolver(IdentityResolver):
    """
    Resolver returning preconfigured ids.

    Args:
        ids: Either one id used for every program, or a name -> id mapping
    """

    def __init__(self, ids: Union[str, dict[str, str]]):
        self.ids = ids

    def resolve(self, program_name: str) -> str:
        if isinstance(self.ids, str):
            return self.ids
        try:
            return self.ids[program_name]
        except KeyError:
            raise ProgramIdentityError(program_name, "no id configured") from None


class KeygenIdentityResolver(IdentityResolver):
    """
    Resolver backed by the Solana CLI key generation tool.

    Attributes:
        keypair_dir: Directory holding <name>-keypair.json files
        keygen_command: Executable name or path of solana-keygen
        timeout: Seconds allowed per tool invocation
    """

    def __init__(
        self,
        keypair_dir: Union[str, Path] = DEFAULT_KEYPAIR_DIR,
        keygen_command: str = DEFAULT_KEYGEN_COMMAND,
        timeout: int = KEYGEN_TIMEOUT,
    ):
        self.keypair_dir = Path(keypair_dir)
        self.keygen_command = keygen_command
        self.timeout = timeout

    def keypair_path(self, program_name: str) -> Path:
        return self.keypair_dir / f"{program_name}-keypair.json"

    def resolve(self, program_name: str) -> str:
        """
        Return the id for program_name, generating its keypair if needed.

        Raises:
            ProgramIdentityError: If the directory cannot be created or
                the tool is missing, fails, times out or prints nothing
        """
        try:
            self.keypair_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProgramIdentityError(
                program_name, f"cannot create {self.keypair_dir}: {e}"
            ) from e

        path = self.keypair_path(program_name)
        if path.exists():
            logger.debug(f"Using existing keypair {path}")
        else:
            logger.info(f"Generating keypair for '{program_name}' at {path}")
            self._run(program_name, ["new", "--no-passphrase", "--outfile", str(path)])

        program_id = self._run(program_name, ["pubkey", str(path)]).strip()
        if not program_id:
            raise ProgramIdentityError(program_name, f"{self.keygen_command} printed no public key")

        validate_program_id(program_id)
        return program_id

    def _run(self, program_name: str, args: list[str]) -> str:
        """Run the keygen tool and return its stdout."""
        cmd = [self.keygen_command, *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise ProgramIdentityError(
                program_name, f"'{self.keygen_command}' not found in PATH"
            ) from None
        except subprocess.TimeoutExpired:
            raise ProgramIdentityError(
                program_name, f"'{self.keygen_command} {args[0]}' timed out after {self.timeout}s"
            ) from None

        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            raise ProgramIdentityError(
                program_name, f"'{self.keygen_command} {args[0]}' failed: {detail}"
            )

        return result.stdout
