"""Setup configuration for tinycdp.

- Package as "tinycdp" for pip installation
- Support development mode (pip install -e .)
- Support production installation (pip install .)
"""

from setuptools import setup, find_packages
from pathlib import Path

here = Path(__file__).parent

readme_path = here / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""


def read_requirements(name):
    path = here / name
    if not path.exists():
        return []
    return [
        line.strip()
        for line in path.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]


setup(
    name="tinycdp",
    version="0.1.0",
    description="Minimal Chrome DevTools Protocol client with browser and page helpers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",

    packages=find_packages(include=["tinycdp", "tinycdp.*"]),

    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": read_requirements("requirements-dev.txt"),
    },

    entry_points={
        "console_scripts": [
            "tinycdp=tinycdp.cli.main:main",
        ],
    },

    python_requires=">=3.10",

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Testing",
        "Topic :: Internet :: WWW/HTTP :: Browsers",
    ],
    keywords="chrome devtools cdp websocket browser automation",
)
