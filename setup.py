import setuptools
from stm32mpsign import stm32mpsign_version

setuptools.setup(
    name="stm32mpsign",
    version=stm32mpsign_version,
    description=("STM32MP1 image header signing for secure boot"),
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    license="Apache Software License",
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.6',
    install_requires=[
        'cryptography>=3.1',
        'click',
        'pyyaml>=5.1',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        "console_scripts": [
            "stm32mpsign=stm32mpsign.main:stm32mpsign",
            "stm32mp1sign=stm32mpsign.main:sign",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: Apache Software License",
    ],
)
