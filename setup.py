"""Setup configuration for memberlink - Member Folder Linkage Tool."""

from setuptools import setup, find_packages
import os
import re

# Read requirements from requirements.txt
def read_requirements():
    """
    Load dependency specifications from the requirements.txt file located next to this module.

    Returns:
        list[str]: Requirement strings, excluding empty lines and lines that begin with `#`.
    """
    requirements_path = os.path.join(os.path.dirname(__file__), "requirements.txt")
    with open(requirements_path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]

# Read long description from README.md
def read_readme():
    """
    Load the project's long description from README.md, or an empty string if it is missing.
    """
    readme_path = os.path.join(os.path.dirname(__file__), "README.md")
    if os.path.exists(readme_path):
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return ""


# Read version from memberlink/cli.py (single source of truth)
def read_version():
    """
    Get the package version defined in memberlink/cli.py.

    Raises:
        RuntimeError: If no __version__ assignment is found in memberlink/cli.py.
    """
    cli_path = os.path.join(os.path.dirname(__file__), "memberlink", "cli.py")
    with open(cli_path, "r", encoding="utf-8") as f:
        content = f.read()
    match = re.search(r'^__version__\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE)
    if match:
        return match.group(1)
    raise RuntimeError("Unable to find __version__ in memberlink/cli.py")


setup(
    name="memberlink",
    version=read_version(),
    description="Link storage member folders to CRM member records with fuzzy name matching",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    author="memberlink Team",
    license="MIT",
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={
        "console_scripts": [
            "memberlink=memberlink.cli:app",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Utilities",
    ],
    keywords="record-linkage entity-matching fuzzy-matching crm",
)
