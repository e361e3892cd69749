from setuptools import setup, find_namespace_packages

setup(
    name="flock",
    version="0.1.0",
    packages=find_namespace_packages(include=['cli*', 'flock*']),
    include_package_data=True,
    package_data={
        "flock": ["data/*.json"],
    },
    python_requires=">=3.11",
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
        "requests",
        "Pillow",
        "pydantic>=2",
        "boto3",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "flock=cli.main:main",
        ],
    },
)
