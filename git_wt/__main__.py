from git_wt.cli import main

raise SystemExit(main())
