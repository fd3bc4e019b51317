from setuptools import setup, find_namespace_packages

setup(
    name='atmfjstc-gz-inspect',
    version='0.1.0',

    author_email='atmfjstc@protonmail.com',

    package_dir={'': 'src'},
    packages=find_namespace_packages(where='src', include=['atmfjstc.*']),

    install_requires=[
        'atmfjstc-binary-utils>=1.2.0, <2',
        'atmfjstc-file-utils>=1.2, <3',
        'atmfjstc-iso-timestamp>=1.1.0, <2',
    ],

    zip_safe=True,

    description="Diagnostic decoder for the member structure and metadata of multi-member GZip files",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: System :: Archiving :: Compression",
        "Typing :: Typed",
    ],
    python_requires='>=3.7',
)
