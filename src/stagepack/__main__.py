from stagepack.cli import main

raise SystemExit(main())
