from setuptools import setup, find_packages

setup(
    name="webpom_agent",
    version="0.0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={"webpom_agent": ["crawler/js/*.js"]},
    install_requires=[
        "playwright==1.52.0",
        "pydantic",
        "python-dotenv",
        "pyyaml",
        "jinja2"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    python_requires='>=3.10',
)
