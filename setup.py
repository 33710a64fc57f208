# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="restore-mtime",
    version="0.1.0",
    description="Restore file and directory modification times from git history",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["restoremtime", "restoremtime.*"]),
    install_requires=[],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'restore-mtime=restoremtime.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
