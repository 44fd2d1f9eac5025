from setuptools import find_packages, setup

package_name = "scene_sync"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test", "test.*"]),
    data_files=[
        ("share/ament_index/resource_index/packages", ["resource/" + package_name]),
        ("share/" + package_name, ["package.xml"]),
        (
            "share/" + package_name + "/launch",
            [
                "launch/scene_sync.launch.py",
            ],
        ),
        (
            "share/" + package_name + "/config",
            [
                "config/scene_sync.yaml",
            ],
        ),
    ],
    install_requires=["setuptools", "numpy", "scipy", "pyyaml", "pydantic>=2", "rerun-sdk"],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=True,
    maintainer="Will Haber",
    maintainer_email="whab13@mit.edu",
    description="Scene graph synchronization for streamed markers, occupancy grids and octomaps (ROS 2 Jazzy)",
    license="Apache-2.0",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": [
            "scene_sync_node = scene_sync.ros.scene_sync_node:main",
        ],
    },
)
