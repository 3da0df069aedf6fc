from smoke_checks.cli import main

raise SystemExit(main())
