from pathlib import Path

from setuptools import find_packages, setup

NAME = "vatledger"
README = Path("README.md")

setup(
    name=NAME,
    version="0.1.0",
    description="Supplier invoice tracking, VAT summaries and reporting",
    long_description=README.read_text(encoding="utf-8") if README.exists() else "",
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=["openpyxl>=3.1", "pydantic>=2.5"],
    extras_require={"test": ["pytest>=7"]},
    entry_points={"console_scripts": ["vatledger=vatledger.cli:main"]},
)
