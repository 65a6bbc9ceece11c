# Population pyramid chart tools
