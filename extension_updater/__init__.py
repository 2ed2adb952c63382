# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Extension Updater - Self-Update Workflow for Host Extensions

Checks a remote source for a newer version of an extension and, once the
operator confirms, asks the host application to apply the update.
"""

__version__ = "1.0.2"
__author__ = "The Extension Updater Authors"
