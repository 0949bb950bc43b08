"""RPM repo cloner built on top of the tdnf CLI."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import time
from pathlib import Path

from pkgfetch_core.errors import FetcherSetupError, PkgFetchError, RepoCommandError
from pkgfetch_core.graph.models import VersionedPkg

from .security import redact_command_for_log, safe_extract_tar
from .types import ClonedPackage, ClonerConfig

logger = logging.getLogger(__name__)

LOCAL_REPO_PREFIX = "local-rpms"
PROVIDES_QUERY_FORMAT = "%{name}-%{version}-%{release}.%{arch}"


def rpm_file_name(package: str) -> str:
    return f"{package}.rpm"


class RpmRepoCloner:
    """Clones RPMs (optionally with their dependency closure) into an output directory.

    Existing RPM directories are exposed to tdnf as local repos and are searched
    before the network; a package found there is reported as pre-built.
    """

    def __init__(self, config: ClonerConfig) -> None:
        self.config = config
        self.out_dir = Path(config.out_dir)
        self._cloned: dict[str, ClonedPackage] = {}
        self._tmp_root: Path | None = None
        self._worker_root: Path | None = None

    @property
    def worker_root(self) -> Path:
        if self._worker_root is None:
            raise RepoCommandError("cloner has not been initialized")
        return self._worker_root

    @property
    def repos_dir(self) -> Path:
        return self.worker_root / "etc" / "yum.repos.d"

    def initialize(self) -> None:
        worker_tar = Path(self.config.worker_tar)
        if not worker_tar.is_file():
            raise FetcherSetupError(f"worker archive not found: {worker_tar}")
        missing = [str(path) for path in self.config.repo_files if not Path(path).is_file()]
        if missing:
            raise FetcherSetupError(f"repo file(s) not found: {', '.join(missing)}")
        tmp_dir = self.config.tmp_dir
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
            if tmp_dir is not None:
                Path(tmp_dir).mkdir(parents=True, exist_ok=True)
            self._tmp_root = Path(tempfile.mkdtemp(prefix="pkgfetch-worker-", dir=tmp_dir))
            worker_root = self._tmp_root / "chroot"
            worker_root.mkdir()
            logger.debug("extracting worker archive %s into %s", worker_tar, worker_root)
            safe_extract_tar(worker_tar, worker_root)
            self._worker_root = worker_root
            self.repos_dir.mkdir(parents=True, exist_ok=True)
            for repo_file in self.config.repo_files:
                shutil.copy2(repo_file, self.repos_dir / Path(repo_file).name)
        except (OSError, PkgFetchError) as exc:
            self.close()
            raise FetcherSetupError(f"failed to set up the worker environment: {exc}") from exc

    def close(self) -> None:
        if self._tmp_root is not None:
            shutil.rmtree(self._tmp_root, ignore_errors=True)
        self._tmp_root = None
        self._worker_root = None

    def __enter__(self) -> "RpmRepoCloner":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def rpm_path_for(self, package: str) -> Path:
        return self.out_dir / rpm_file_name(package)

    def what_provides(self, pkg: VersionedPkg) -> list[str]:
        command = [
            self.config.tdnf_binary,
            "repoquery",
            "--whatprovides",
            str(pkg),
            "--qf",
            PROVIDES_QUERY_FORMAT,
            *self._repo_args(),
        ]
        result = self._run(command)
        providers: list[str] = []
        for line in (result.stdout or "").splitlines():
            name = line.strip()
            if not name or " " in name or name in providers:
                continue
            providers.append(name)
        logger.debug("'%s' is provided by %s", pkg, providers)
        return providers

    def clone(self, include_deps: bool, *packages: str) -> bool:
        """Clone ``packages`` into the output directory.

        Returns True when every requested package was found in an existing RPM
        directory rather than downloaded.
        """
        if not packages:
            raise RepoCommandError("no packages requested")
        prebuilt_flags: list[bool] = []
        for package in packages:
            local_rpm = self._find_local_rpm(package)
            target = self.rpm_path_for(package)
            if include_deps or (local_rpm is None and not target.exists()):
                self._download(package, include_deps)
            if local_rpm is not None:
                # a locally built RPM wins over the copy tdnf may have downloaded
                shutil.copy2(local_rpm, target)
            if not target.exists():
                raise RepoCommandError(f"package '{package}' was not downloaded to {target}")
            prebuilt = local_rpm is not None
            self._cloned[package] = ClonedPackage(name=package, path=target, prebuilt=prebuilt)
            prebuilt_flags.append(prebuilt)
        return all(prebuilt_flags)

    def record_clone(self, package: ClonedPackage) -> None:
        self._cloned[package.name] = package

    def cloned_packages(self) -> tuple[ClonedPackage, ...]:
        return tuple(self._cloned[name] for name in sorted(self._cloned))

    def convert_downloaded_packages_into_repo(self) -> None:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self._run([self.config.createrepo_binary, "--update", str(self.out_dir)])

    def _download(self, package: str, include_deps: bool) -> None:
        command = [
            self.config.tdnf_binary,
            "install",
            "-y",
            "--downloadonly",
            "--downloaddir",
            str(self.out_dir),
        ]
        if include_deps:
            command.append("--alldeps")
        else:
            command.append("--nodeps")
        command.extend([*self._repo_args(), package])
        self._run(command)

    def _find_local_rpm(self, package: str) -> Path | None:
        name = rpm_file_name(package)
        for rpm_dir in self.config.rpm_dirs:
            root = Path(rpm_dir)
            if not root.is_dir():
                continue
            for candidate in sorted(root.rglob(name)):
                if candidate.is_file():
                    return candidate
        return None

    def _repo_args(self) -> list[str]:
        args = [
            "--installroot",
            str(self.worker_root),
            f"--setopt=reposdir={self.repos_dir}",
        ]
        for index, rpm_dir in enumerate(self.config.rpm_dirs):
            args.append(f"--repofrompath={LOCAL_REPO_PREFIX}-{index},{Path(rpm_dir).resolve()}")
        if self.config.disable_upstream_repos:
            args.extend(["--disablerepo=*", f"--enablerepo={LOCAL_REPO_PREFIX}-*"])
        else:
            if not self.config.use_preview_repo:
                args.append(f"--disablerepo={self.config.preview_repo_pattern}")
            if self.config.disable_default_repos:
                args.append(f"--disablerepo={self.config.default_repo_pattern}")
        if self.config.tls_cert:
            args.append(f"--setopt=sslclientcert={self.config.tls_cert}")
        if self.config.tls_key:
            args.append(f"--setopt=sslclientkey={self.config.tls_key}")
        return args

    def _run(self, command: list[str]) -> subprocess.CompletedProcess[str]:
        timeout = self.config.timeout_seconds
        retries = max(int(self.config.max_retries), 1)
        backoff = max(float(self.config.backoff_seconds), 0.0)
        redacted = " ".join(redact_command_for_log(command))

        for attempt in range(1, retries + 1):
            try:
                logger.debug("repo command attempt=%s/%s cmd=%s", attempt, retries, redacted)
                result = subprocess.run(
                    command,
                    check=False,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                )
                if result.returncode == 0:
                    return result
                if attempt >= retries:
                    raise RepoCommandError(
                        _format_failure(redacted, result.returncode, result.stderr),
                        returncode=result.returncode,
                        stderr=result.stderr,
                    )
            except FileNotFoundError as exc:
                raise RepoCommandError(f"{command[0]} not found. Install it and ensure it is available in PATH.") from exc
            except subprocess.TimeoutExpired as exc:
                if attempt >= retries:
                    raise RepoCommandError(f"command timed out after {timeout}s cmd='{redacted}'") from exc
            time.sleep(min(backoff * attempt, 2.0))
        raise RepoCommandError(f"command failed cmd='{redacted}'")


def construct_cloner(config: ClonerConfig) -> RpmRepoCloner:
    cloner = RpmRepoCloner(config)
    cloner.initialize()
    return cloner


def _format_failure(redacted: str, code: int, stderr: str | None) -> str:
    detail = (stderr or "").strip()
    if detail:
        return f"command failed (exit={code}) cmd='{redacted}' err='{detail}'"
    return f"command failed (exit={code}) cmd='{redacted}'"
