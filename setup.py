from setuptools import setup, find_packages
import os

install_requires = ["lark", "pydantic>=2"]

# Define optional dependencies for development and specific features
extras_require = {"dev": ["pytest"], "lsp": ["pygls>=1.0.0,<2"]}  # Language Server Protocol support

setup(
    name="auwla-compiler",
    version="0.1.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "auwlac = auwlac.cli:main",
            "auwlac-lsp = auwlac.server:start_server",
        ],
    },
    include_package_data=True,
    package_data={"auwlac.parser": ["*.lark"]},
    description="A compiler for auwla components written as markup-embedded TypeScript.",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    python_requires=">=3.9",
)
