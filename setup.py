from setuptools import find_packages, setup

setup(
    name="ci-wait",
    version="1.0.0",
    description="Wait for GitHub CI checks with adaptive polling and progress estimates",
    packages=find_packages(include=["ciwait", "ciwait.*"]),
    python_requires=">=3.10",
    install_requires=["tracerite"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["ci-wait = ciwait.cli:main"]},
)
