from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="withdraw-trie",
    version="0.1.0",
    author="Withdraw Trie Contributors",
    description="Append-only Merkle withdrawal trie with inclusion proofs for cross-domain message bridges",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Security :: Cryptography",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
    install_requires=[
        "eth-utils>=2.0.0",
        "eth-hash[pycryptodome]>=0.5.0",
        "pydantic>=2.0.0",
        "typing_extensions>=4.5.0",
        "click>=8.0.0",
        "flask>=2.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.7.0",
            "mypy>=1.5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "withdraw-trie=withdraw_trie.cli.main:cli",
            "withdraw-outbox=outbox.server:main",
        ],
    },
)
