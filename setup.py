import re

from setuptools import setup

with open("README.rst") as readme:
    long_description = readme.read()

# read the version without importing the package and its dependencies
with open("multisigutils/__init__.py") as init_file:
    __version__ = re.search(
        r'^__version__ = "([^"]+)"', init_file.read(), re.MULTILINE
    ).group(1)

setup(
    name="multisig-utils",
    version=__version__,
    description="Bitcoin multisig key validation and transaction assembly utilities",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    license="MIT",
    keywords="bitcoin multisig xpub psbt signatures library utilities",
    python_requires=">=3.9",
    install_requires=[
        "base58check>=1.0.2,<2.0",
        "ecdsa>=0.18,<1.0",
        "bech32>=1.2,<2.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    packages=["multisigutils"],
    zip_safe=False,
)
