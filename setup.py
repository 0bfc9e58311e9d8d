"""Setup configuration for repoflow"""

from setuptools import setup, find_packages

setup(
    name="repoflow",
    version="0.1.0",
    description=(
        "Pull request flow metrics for GitHub repositories: opened vs. merged "
        "over a trailing window, with backlog trend."
    ),
    author="repoflow Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "flask>=2.2",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "repoflow=repoflow.main:main",
            "repoflow-server=repoflow.api:main",
        ],
    },
)
