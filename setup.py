from pathlib import Path  # isort: skip

from setuptools import find_packages, setup  # isort: skip


HERE = Path(__file__).resolve().parent


def get_long_description():
    readme = HERE / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="querytrace",
    version="0.1.0",
    description="OpenTelemetry spans for completed database query events",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    license="BSD-3-Clause",
    packages=find_packages(include=["querytrace", "querytrace.*"]),
    python_requires=">=3.8",
    zip_safe=False,
    install_requires=[
        "attrs>=20",
        "envier~=0.5",
        "opentelemetry-api>=1.15",
        "opentelemetry-sdk>=1.15",
        "wrapt>=1.14",
    ],
    extras_require={
        "tests": [
            "mock",
            "pytest",
        ],
    },
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
    ],
)
