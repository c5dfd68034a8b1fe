from setuptools import setup, find_packages

setup(
    name="chrometrace",
    version="0.1.0",
    description="Convert sampled Python call stacks into Chrome Trace Event timelines",
    author="Kirrito-k423",
    url="https://github.com/Kirrito-k423/putils",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "portalocker",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "chrometrace=chrometrace.cli:main",
        ],
    },
    python_requires=">=3.7",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
