"""Build DocRepo package."""
import setuptools

with open("README.md") as f:
    long_desc = f.read()

setuptools.setup(
    name="docrepo",
    version="0.1.0",
    description="Client for document-repository REST and Automation APIs",
    long_description=long_desc,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests*", "testing*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "click",
        "pydantic>=2",
        "requests>=2.27",
        "tomli ; python_version<'3.11'",
        "tomli-w",
        "typing-extensions>=4.3.0 ; python_version<'3.11'",
    ],
    extras_require={
        "dev": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "docrepo=docrepo.cli:cli",
        ],
    },
)
