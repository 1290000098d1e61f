#!/usr/bin/env python3
# -*- coding: UTF-8 -*-
from riggedballot.cli import ballot_replay

if __name__ == "__main__":
    ballot_replay._parse_cli_args()
