"""
buildprep - Build environment preparation for on-premises ERP build hosts.

Before each build run the deployed metadata packages are brought back to a
known baseline:
- One-time baseline backup of the packages tree, verified and marked complete
- Selective restore that never clobbers customizations or foreign content
- Mirror log analysis to separate benign noise from real problems
- Database backup/restore through an external script
"""

__version__ = "0.1.0"
__author__ = "buildprep Contributors"
