from setuptools import setup, find_namespace_packages
import os

install_requires = ["lark", "pydantic>=2", "pygls>=2.0", "lsprotocol"]

# Define optional dependencies for development
extras_require = {"dev": ["pytest"]}

setup(
    name="taskjuggler-language-server",
    version="0.1.0",
    packages=find_namespace_packages(where=".", include=["tjls", "tjls.*"], exclude=["*.tests", "*.tests.*"]),
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "tjls = tjls.cli:main",
        ],
    },
    include_package_data=True,
    package_data={"tjls.scanner": ["*.lark"]},
    description="Symbol model, diagnostics and language server for the TaskJuggler project description language.",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
)
