from setuptools import find_packages, setup

setup(
    name="lineargraph",
    version="0.1.0",
    description="Dependency graphs of Linear issues across projects, rendered with graphviz",
    packages=find_packages(include=["lineargraph", "lineargraph.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "graphviz>=0.20",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["lineargraph=lineargraph.cli:main"],
    },
)
