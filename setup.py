import re
import subprocess
from pathlib import Path

from setuptools import find_packages, setup


def run_cmd(cmd):
    if isinstance(cmd, str):
        cmd = cmd.split(" ")
    return subprocess.check_output(cmd, stderr=subprocess.DEVNULL).decode(encoding="UTF-8").split("\n")


def get_last_tag() -> str:
    result = [v for v in run_cmd("git tag -l v*") if not v == ""]
    if len(result) == 0:
        raise ValueError("No version tag")
    return result[-1]


def get_nb_commits_until(tag: str) -> int:
    return len(run_cmd(f'git log {tag}..HEAD --oneline'))


def get_version() -> str:
    """Version from the last git tag, or from fastnmf/_version.py outside of a tagged git repository"""
    try:
        last_tag = get_last_tag()
        return f"{'.'.join(last_tag.lstrip('v').split('.')[:-1])}.{get_nb_commits_until(last_tag)}"
    except (subprocess.CalledProcessError, FileNotFoundError, ValueError):
        version_file = Path("fastnmf") / "_version.py"
        return re.search(r'__version__ = "(.+)"', version_file.read_text()).group(1)


long_description = Path("README.md").read_text()
requirements = Path("requirements.txt").read_text().splitlines()
version = get_version()


if __name__ == "__main__":
    setup(
        name="fastnmf",
        version=version,
        packages=find_packages(exclude=["tests", "tests.*"]),
        include_package_data=True,
        long_description=long_description,
        long_description_content_type="text/markdown",
        install_requires=requirements,
        extras_require={"test": ["pytest"]},
        python_requires=">=3.7",
    )
