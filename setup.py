import os.path
from setuptools import find_packages, setup

# the directory containing this file
ROOT = os.path.dirname(__file__)

# the text of the README file
with open(os.path.join(ROOT, "README.md"), "r") as f:
    README = f.read()

setup(
    name="confluence-to-mediawiki",
    version="0.1.0",
    description="Convert Confluence storage format pages to MediaWiki markup",
    long_description=README,
    long_description_content_type="text/markdown",
    author="conf2mw contributors",
    license="MIT",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(exclude=("tests",)),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "cattrs",
        "lxml",
        "orjson",
        "typing_extensions; python_version < '3.12'",
    ],
    entry_points={
        "console_scripts": ["conf2mw=conf2mw.__main__:main"],
    },
)
