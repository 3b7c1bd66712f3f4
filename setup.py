#!/usr/bin/env python3
"""Setup script for amule-remote."""

from pathlib import Path
from setuptools import find_packages, setup


README = Path(__file__).parent / "README.md"


if __name__ == "__main__":
    setup(
        name="amule-remote",
        version="0.1.0",
        description="Extração de dados da interface web do aMule e validação de links ed2k.",
        long_description=README.read_text(encoding="utf-8") if README.exists() else "",
        long_description_content_type="text/markdown",
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages("src"),
        package_data={"amule_remote": ["data/*.json"]},
        include_package_data=True,
        install_requires=[
            "lxml",
        ],
        extras_require={
            # GLib main loop for StatusMonitor.start()
            "glib": ["PyGObject"],
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "amule-remote-cli=amule_remote.cli:main",
            ],
        },
    )
