from speckit_starter.cli import main

raise SystemExit(main())
