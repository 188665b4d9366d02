from setuptools import find_packages, setup

setup(
    name="easyhttp",
    version="0.1.0",
    description="Send HTTP requests described as plain data and decode their responses",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "httpx>=0.26",
        "lxml>=4.9",
        "pydantic>=2.0",
        "typing_extensions>=4.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
