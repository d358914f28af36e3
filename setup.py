from __future__ import annotations

from setuptools import find_packages, setup

from config.version import PROJECT_VERSION, PYTHON_REQUIRES_SPECIFIER

if __name__ == "__main__":
    setup(
        name="ranking-electoral",
        version=PROJECT_VERSION,
        python_requires=PYTHON_REQUIRES_SPECIFIER,
        packages=find_packages(include=["config", "ranking_electoral", "src", "src.*"]),
        py_modules=["main"],
        install_requires=[
            "pydantic>=2.5",
            "SQLAlchemy>=2.0",
            "loguru>=0.7",
            "python-dotenv>=1.0",
            "tomli>=2.0; python_version < '3.11'",
            "tomli-w>=1.0",
            "rapidfuzz>=3.0",
        ],
        extras_require={
            "test": [
                "pytest>=7.4",
                "hypothesis>=6.90",
            ],
        },
        entry_points={
            "console_scripts": [
                "ranking-electoral=main:main",
                "ranking-electoral-config=ranking_electoral.config_manager:main",
            ],
        },
    )
